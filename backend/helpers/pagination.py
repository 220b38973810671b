"""
Pagination query parameters shared by list endpoints.
"""

from typing import Annotated

from fastapi import Query

PaginationOffset = Annotated[
    int, Query(ge=0, description="Number of records to skip")
]
PaginationLimit = Annotated[
    int, Query(ge=1, le=100, description="Maximum number of records to return")
]
