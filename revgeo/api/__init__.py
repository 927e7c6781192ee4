"""
API Module
---------
Provides RESTful API endpoints for reverse geocoding using FastAPI.
Features include:
- Resolving a single coordinate pair to an address and its place attributes
- Resolving batches of coordinate pairs in parallel
"""
