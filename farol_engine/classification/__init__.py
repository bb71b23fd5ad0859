"""
Classification layer — one pure classifier per metric, plus display formatting.

Modules
-------
classifiers  Threshold constants, ``classify_*`` functions and the
             ``CLASSIFIERS`` metric table.
formatting   Display precision per metric, pt-BR flag labels, and the
             inverse ``parse_cell_value()``.
"""
