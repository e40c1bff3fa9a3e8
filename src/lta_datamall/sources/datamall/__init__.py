from .client import DataMallClient, DataMallError

__all__ = ["DataMallClient", "DataMallError"]
