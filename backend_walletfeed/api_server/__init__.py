"""
API server package — HTTP interface over the transactions service.

Serves on-demand transaction history and hosts the periodic poll loop
for the lifetime of the ASGI app.
"""
