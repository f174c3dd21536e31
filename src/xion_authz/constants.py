"""
Protocol Constants

Message type URLs, persisted storage keys and grant defaults shared by the
grant builders, validators and the orchestrator.
"""

# ---------------------------------------------------------------------------
# Persisted storage keys
# ---------------------------------------------------------------------------

GRANTER_STORAGE_KEY = "xion-authz-granter-account"
TEMP_ACCOUNT_STORAGE_KEY = "xion-authz-temp-account"

# ---------------------------------------------------------------------------
# authz / feegrant message type URLs
# ---------------------------------------------------------------------------

MSG_GRANT = "/cosmos.authz.v1beta1.MsgGrant"
MSG_EXEC = "/cosmos.authz.v1beta1.MsgExec"
MSG_GRANT_ALLOWANCE = "/cosmos.feegrant.v1beta1.MsgGrantAllowance"
MSG_EXECUTE_CONTRACT = "/cosmwasm.wasm.v1.MsgExecuteContract"

GENERIC_AUTHORIZATION = "/cosmos.authz.v1beta1.GenericAuthorization"
SEND_AUTHORIZATION = "/cosmos.bank.v1beta1.SendAuthorization"
STAKE_AUTHORIZATION = "/cosmos.staking.v1beta1.StakeAuthorization"
CONTRACT_EXECUTION_AUTHORIZATION = "/cosmwasm.wasm.v1.ContractExecutionAuthorization"

MAX_CALLS_LIMIT = "/cosmwasm.wasm.v1.MaxCallsLimit"
COMBINED_LIMIT = "/cosmwasm.wasm.v1.CombinedLimit"
ALLOW_ALL_MESSAGES_FILTER = "/cosmwasm.wasm.v1.AllowAllMessagesFilter"

BASIC_ALLOWANCE = "/cosmos.feegrant.v1beta1.BasicAllowance"
ALLOWED_MSG_ALLOWANCE = "/cosmos.feegrant.v1beta1.AllowedMsgAllowance"
CONTRACTS_ALLOWANCE = "/xion.v1.ContractsAllowance"
MULTI_ANY_ALLOWANCE = "/xion.v1.MultiAnyAllowance"

# ---------------------------------------------------------------------------
# Staking / governance messages covered by the stake grant bundle
# ---------------------------------------------------------------------------

MSG_WITHDRAW_DELEGATOR_REWARD = "/cosmos.distribution.v1beta1.MsgWithdrawDelegatorReward"
MSG_DELEGATE = "/cosmos.staking.v1beta1.MsgDelegate"
MSG_UNDELEGATE = "/cosmos.staking.v1beta1.MsgUndelegate"
MSG_CANCEL_UNBONDING_DELEGATION = "/cosmos.staking.v1beta1.MsgCancelUnbondingDelegation"
MSG_VOTE = "/cosmos.gov.v1beta1.MsgVote"
MSG_SUBMIT_PROPOSAL = "/cosmos.gov.v1.MsgSubmitProposal"

STAKE_AUTHORIZATION_TYPES = (
    "AUTHORIZATION_TYPE_DELEGATE",
    "AUTHORIZATION_TYPE_UNDELEGATE",
    "AUTHORIZATION_TYPE_REDELEGATE",
)

STAKE_GENERIC_MESSAGES = (
    MSG_WITHDRAW_DELEGATOR_REWARD,
    MSG_CANCEL_UNBONDING_DELEGATION,
    MSG_VOTE,
    MSG_SUBMIT_PROPOSAL,
)

STAKE_FEE_ALLOWED_MESSAGES = (
    MSG_WITHDRAW_DELEGATOR_REWARD,
    MSG_DELEGATE,
    MSG_UNDELEGATE,
    MSG_EXEC,
    MSG_CANCEL_UNBONDING_DELEGATION,
    MSG_VOTE,
)

# ---------------------------------------------------------------------------
# Grant defaults
# ---------------------------------------------------------------------------

CONTRACT_CALLS_LIMIT = 255

# Fee estimation: simulated gas is padded, the fee amount doubled.
GAS_ADJUSTMENT = 1.6
FEE_MULTIPLIER = 2

DEFAULT_REQUEST_TIMEOUT = 30.0
TREASURY_CACHE_TTL = 10 * 60
