"""
Operational scripts: schema creation, seeding and running the server.
"""
