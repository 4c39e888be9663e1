"""
Line-protocol quiz server with console and Discord front-ends.
"""
__version__ = "1.0.0"
