from .bases import AccountStrategy, HttpAccountStrategy
from .numia import NumiaAccountStrategy
from .subquery import SubqueryAccountStrategy
from .rpc import RpcAccountStrategy
from .aa_api import AAApiAccountStrategy
from .empty import EmptyAccountStrategy
from .composite import CompositeAccountStrategy
from .factory import create_composite_account_strategy
from .existence import check_account_exists

__all__ = [
    "AccountStrategy",
    "HttpAccountStrategy",
    "NumiaAccountStrategy",
    "SubqueryAccountStrategy",
    "RpcAccountStrategy",
    "AAApiAccountStrategy",
    "EmptyAccountStrategy",
    "CompositeAccountStrategy",
    "create_composite_account_strategy",
    "check_account_exists",
]
