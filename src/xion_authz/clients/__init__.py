from .aa_api import AAApiClient
from .contract_query import ContractQueryClient, RestContractQueryClient

__all__ = [
    "AAApiClient",
    "ContractQueryClient",
    "RestContractQueryClient",
]
