"""
HTTP routers mounted under /api by tournament_tables.main.
"""
