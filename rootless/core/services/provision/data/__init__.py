"""
L0 Data — constants and lookup tables.

Pure data: no I/O, no subprocess.
"""
