from cosmos_history.fetchers.executor import QueryExecutor
from cosmos_history.fetchers.rest_fetcher import RestQueryExecutor
from cosmos_history.fetchers.rpc_fetcher import TxSearchExecutor

_EXECUTORS = {
    "rpc": TxSearchExecutor,
    "rest": RestQueryExecutor,
}


def build_executor(backend: str = "rpc", **kwargs) -> QueryExecutor:
    executor_cls = _EXECUTORS[backend]
    return executor_cls(**kwargs)
