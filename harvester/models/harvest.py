from typing import List

from pydantic import BaseModel, Field, field_validator

from harvester.services.crawl.fetcher import DEFAULT_USER_AGENT


class CatalogRunParams(BaseModel):
    urls: List[str] = Field(..., min_length=1, description="Listing pages to visit, each once")
    concurrency: int = Field(4, ge=1, description="Worker threads fetching pages")
    user_agent: str = DEFAULT_USER_AGENT


class DirectoryRunParams(BaseModel):
    domain: str = Field(..., description="Base URL of the directory, e.g. https://fiu.campuslabs.com")
    page_size: int = Field(1000, ge=1, description="Items requested per listing page")
    start_page: int = Field(0, ge=0, description="First listing page index")
    enrich_concurrency: int = Field(1, ge=1, description="Parallel detail fetches per page")
    user_agent: str = DEFAULT_USER_AGENT

    @field_validator("domain")
    @classmethod
    def _strip_domain(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if not v:
            raise ValueError("domain must not be empty")
        return v
