from sitedesk.schemas.site import (
    ApiSyncResponse,
    ApiSyncUpdate,
    SiteCreate,
    SiteListFilters,
    SiteListItem,
    SiteListResponse,
    SiteResponse,
    SiteUpdate,
    SiteUsersUpdate,
    SyncResult,
    UserSummary,
)
from sitedesk.schemas.site_details import (
    ContractData,
    ContractResponse,
    CredentialData,
    PageSpeedInsightResponse,
    PageSpeedRunRequest,
    QueuedJobResponse,
    ServerInfoResponse,
    SiteMetricResponse,
    SystemInfoPayload,
)
from sitedesk.schemas.catalog import (
    CatalogItemResponse,
    CatalogItemWrite,
    CatalogListResponse,
    CategoryCreate,
    CategoryResponse,
    FavoriteToggleResponse,
    OpenGraphResponse,
)
from sitedesk.schemas.dashboard import DashboardResponse

__all__ = [
    "ApiSyncResponse", "ApiSyncUpdate", "SiteCreate", "SiteListFilters", "SiteListItem",
    "SiteListResponse", "SiteResponse", "SiteUpdate", "SiteUsersUpdate", "SyncResult",
    "UserSummary",
    "ContractData", "ContractResponse", "CredentialData", "PageSpeedInsightResponse",
    "PageSpeedRunRequest", "QueuedJobResponse", "ServerInfoResponse", "SiteMetricResponse",
    "SystemInfoPayload",
    "CatalogItemResponse", "CatalogItemWrite", "CatalogListResponse", "CategoryCreate",
    "CategoryResponse", "FavoriteToggleResponse", "OpenGraphResponse",
    "DashboardResponse",
]
