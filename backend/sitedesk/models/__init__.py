from sitedesk.models.base import Base
from sitedesk.models.user import User
from sitedesk.models.site import Site, site_user
from sitedesk.models.site_credential import SiteCredential
from sitedesk.models.site_contract import SiteContract
from sitedesk.models.site_server_info import SiteServerInfo
from sitedesk.models.site_metric import SiteMetric
from sitedesk.models.site_pagespeed_insight import SitePageSpeedInsight
from sitedesk.models.job_task import JobTask
from sitedesk.models.catalog import Media, Resource, ResourceCategory, Tool, ToolCategory

__all__ = [
    "Base", "User", "Site", "site_user",
    "SiteCredential", "SiteContract", "SiteServerInfo", "SiteMetric",
    "SitePageSpeedInsight", "JobTask",
    "Media", "Resource", "ResourceCategory", "Tool", "ToolCategory",
]
