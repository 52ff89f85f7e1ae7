"""Government data services feeding the assessment registry.

Available services:
- GIASService: independent school register import from Get Information About Schools
- GIASRatingLookup: latest inspection outcome per URN from the same register
- CompaniesHouseEnrichmentService: builds the URN-keyed Companies House cache
"""

from src.services.gov_data.companies_house import CompaniesHouseEnrichmentService
from src.services.gov_data.gias import GIASRatingLookup, GIASService

__all__ = ["GIASService", "GIASRatingLookup", "CompaniesHouseEnrichmentService"]
