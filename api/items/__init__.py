"""
Read-only item listing: filterable, seek-paginated `GET /v1/items`.
"""
