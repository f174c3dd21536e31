"""Strategy that never finds an account; used to force account creation."""

from typing import List, Union

from .bases import AccountStrategy
from ..schemas.bases import AuthenticatorType, SmartAccountWithCodeId


class EmptyAccountStrategy(AccountStrategy):
    """Always returns an empty list."""

    name = "empty"

    async def fetch_smart_accounts(
        self,
        credential: str,
        authenticator_type: Union[AuthenticatorType, str],
    ) -> List[SmartAccountWithCodeId]:
        return []
