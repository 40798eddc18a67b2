from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    rpc_endpoint: str = "http://localhost:26657"
    rest_endpoint: str = "http://localhost:1317"

    page_size: int = 100
    order_by: Literal["asc", "desc"] = "desc"
    max_retries: int = 3
    retry_delay: float = 1.0
    rate_limit_delay: float = 0.2
    request_timeout: float = 10.0

    query_groups: list[str] = ["core"]
    query_concurrency: int = 1
    fetch_timeout: float | None = None

    # None keeps the printable-key heuristic; set it when the node's encoding is known.
    base64_attributes: bool | None = None

    cache_max_entries: int = 1000
    cache_ttl: float = 300.0

    @property
    def rpc_url(self) -> str:
        return self.rpc_endpoint.rstrip("/")

    @property
    def rest_url(self) -> str:
        return self.rest_endpoint.rstrip("/")

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
