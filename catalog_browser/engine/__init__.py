"""Engine components orchestrating query → fetch → merge → paginate."""

from .accumulator import merge, sort_records
from .controller import QueryController
from .details import AuthorDetail, AuthorRef, BookDetail, DetailGateway
from .gateway import CatalogClient, FetchGateway, FetchRequest
from .models import FetchError, PageResult, ResultRecord, SearchSession, Status
from .pagination import PaginationDriver, ScrollMetrics

__all__ = [
    "AuthorDetail",
    "AuthorRef",
    "BookDetail",
    "CatalogClient",
    "DetailGateway",
    "FetchError",
    "FetchGateway",
    "FetchRequest",
    "PageResult",
    "PaginationDriver",
    "QueryController",
    "ResultRecord",
    "ScrollMetrics",
    "SearchSession",
    "Status",
    "merge",
    "sort_records",
]
