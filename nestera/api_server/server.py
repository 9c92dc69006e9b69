"""
FastAPI server — HTTP binding for the ledger.

Every ledger operation is one endpoint. The calling principal(s) come from
the X-Nestera-Principal header, which the fronting auth gateway sets after
verifying the caller; this service does not authenticate on its own.

Run with: uvicorn nestera.api_server.server:app --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Header, Request
from fastapi.responses import JSONResponse

from nestera.api_server.schemas import (
    AdminRequest,
    AdminResponse,
    AmountRequest,
    ContributeRequest,
    CreateGroupRequest,
    CreatePlanRequest,
    ExistsResponse,
    GroupIdResponse,
    GroupResponse,
    MemberRequest,
    MemberResponse,
    MintRequest,
    MintResponse,
    PlanIdResponse,
    PlanResponse,
    UserResponse,
    VerifyResponse,
)
from nestera.config.env import mask_database_url
from nestera.config.settings import get_settings
from nestera.core.exceptions import (
    AlreadyInitialized,
    GroupFull,
    NotInitialized,
    PlanNotFound,
    SavingsError,
    SignatureAlreadyUsed,
    SignatureExpired,
    SignatureInvalid,
    Unauthorized,
    UserAlreadyExists,
    UserNotFound,
)
from nestera.host.auth import HeaderAuthorizer, MockAuthorizer
from nestera.ledger.contract import NesteraContract
from nestera.ledger.models import plan_type_from_dict
from nestera.nestera_logging import bind_principal, get_logger

logger = get_logger(__name__)

PRINCIPAL_HEADER = "X-Nestera-Principal"

_STATUS_BY_ERROR: dict[type[SavingsError], int] = {
    UserNotFound: 404,
    PlanNotFound: 404,
    AlreadyInitialized: 409,
    NotInitialized: 409,
    UserAlreadyExists: 409,
    GroupFull: 409,
    SignatureAlreadyUsed: 409,
    Unauthorized: 401,
    SignatureInvalid: 403,
    SignatureExpired: 403,
}


# -----------------------------------------------------------------------------
# Contract dependency
# -----------------------------------------------------------------------------

_base_contract: NesteraContract | None = None


def get_base_contract() -> NesteraContract:
    """App-scoped contract over the configured store. Denies every principal until bound per request."""
    global _base_contract
    if _base_contract is None:
        _base_contract = NesteraContract.from_settings(MockAuthorizer())
    return _base_contract


async def get_contract(
    base: NesteraContract = Depends(get_base_contract),
    principal: str | None = Header(None, alias=PRINCIPAL_HEADER),
) -> NesteraContract:
    """
    Dependency: contract bound to the principals asserted for this request.

    Async so the principal bound to the log context is visible to the
    endpoint running after it.
    """
    bind_principal(principal)
    return base.with_authorizer(HeaderAuthorizer(principal))


def reset_contract_for_test() -> None:
    global _base_contract
    _base_contract = None


# -----------------------------------------------------------------------------
# App
# -----------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logger.info(
        "api_started",
        database=mask_database_url(settings.database_url),
        mint_replay_protection=settings.mint_replay_protection,
    )
    yield
    logger.info("api_stopped")


app = FastAPI(
    title="Nestera Ledger API",
    description="Savings ledger: accounts, savings plans, group saves and signed mint authorizations.",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(SavingsError)
async def savings_error_handler(request: Request, exc: SavingsError) -> JSONResponse:
    status = _STATUS_BY_ERROR.get(type(exc), 400)
    return JSONResponse(status_code=status, content=exc.to_dict())


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": "BadRequest", "code": 0, "detail": str(exc)})


@app.get("/health")
def health() -> dict[str, str]:
    """Liveness probe: API is up."""
    return {"status": "ok"}


# -- admin ---------------------------------------------------------------------


@app.post("/admin/initialize", response_model=AdminResponse, status_code=201)
def initialize_admin(body: AdminRequest, contract: NesteraContract = Depends(get_contract)):
    contract.initialize(body.admin.strip())
    return AdminResponse(admin=contract.get_admin())


@app.get("/admin", response_model=AdminResponse)
def get_admin(contract: NesteraContract = Depends(get_contract)):
    return AdminResponse(admin=contract.get_admin())


@app.get("/admin/initialized", response_model=dict[str, bool])
def admin_initialized(contract: NesteraContract = Depends(get_contract)):
    return {"initialized": contract.is_initialized()}


@app.put("/admin", response_model=AdminResponse)
def update_admin(body: AdminRequest, contract: NesteraContract = Depends(get_contract)):
    """Rotate the admin; the gateway must assert both the current and the new admin."""
    contract.update_admin(body.admin.strip())
    return AdminResponse(admin=contract.get_admin())


# -- mint ----------------------------------------------------------------------


@app.post("/mint/verify", response_model=VerifyResponse)
def verify_mint(body: MintRequest, contract: NesteraContract = Depends(get_contract)):
    return VerifyResponse(valid=contract.verify_signature(body.payload.to_payload(), body.signature))


@app.post("/mint", response_model=MintResponse)
def mint(body: MintRequest, contract: NesteraContract = Depends(get_contract)):
    payload = body.payload.to_payload()
    if body.credit:
        amount = contract.mint_and_credit(payload, body.signature)
    else:
        amount = contract.mint(payload, body.signature)
    return MintResponse(user=payload.user, amount=amount, credited=body.credit)


# -- users ---------------------------------------------------------------------


@app.post("/users/{user}", response_model=UserResponse, status_code=201)
def initialize_user(user: str, contract: NesteraContract = Depends(get_contract)):
    contract.initialize_user(user)
    return UserResponse.from_record(user, contract.get_user(user))


@app.get("/users/{user}", response_model=UserResponse)
def get_user(user: str, contract: NesteraContract = Depends(get_contract)):
    return UserResponse.from_record(user, contract.get_user(user))


@app.get("/users/{user}/exists", response_model=ExistsResponse)
def user_exists(user: str, contract: NesteraContract = Depends(get_contract)):
    return ExistsResponse(exists=contract.user_exists(user))


@app.post("/users/{user}/flexi/deposit", response_model=UserResponse)
def deposit_flexi(user: str, body: AmountRequest, contract: NesteraContract = Depends(get_contract)):
    contract.deposit_flexi(user, body.amount)
    return UserResponse.from_record(user, contract.get_user(user))


@app.post("/users/{user}/flexi/withdraw", response_model=UserResponse)
def withdraw_flexi(user: str, body: AmountRequest, contract: NesteraContract = Depends(get_contract)):
    contract.withdraw_flexi(user, body.amount)
    return UserResponse.from_record(user, contract.get_user(user))


# -- plans ---------------------------------------------------------------------


@app.post("/users/{user}/plans", response_model=PlanIdResponse, status_code=201)
def create_plan(user: str, body: CreatePlanRequest, contract: NesteraContract = Depends(get_contract)):
    try:
        plan_type = plan_type_from_dict(body.plan_type)
    except TypeError as e:
        raise ValueError(f"invalid plan_type: {e}") from e
    return PlanIdResponse(plan_id=contract.create_savings_plan(user, plan_type, body.initial_deposit))


@app.get("/users/{user}/plans", response_model=list[PlanResponse])
def list_plans(user: str, contract: NesteraContract = Depends(get_contract)):
    return [PlanResponse.from_plan(p) for p in contract.get_user_savings_plans(user)]


@app.get("/users/{user}/plans/{plan_id}", response_model=PlanResponse)
def get_plan(user: str, plan_id: int, contract: NesteraContract = Depends(get_contract)):
    return PlanResponse.from_plan(contract.get_savings_plan(user, plan_id))


@app.post("/users/{user}/plans/{plan_id}/deposit", response_model=PlanResponse)
def deposit_to_plan(
    user: str, plan_id: int, body: AmountRequest, contract: NesteraContract = Depends(get_contract)
):
    return PlanResponse.from_plan(contract.deposit_to_plan(user, plan_id, body.amount))


@app.post("/users/{user}/plans/{plan_id}/withdraw", response_model=PlanResponse)
def withdraw_from_plan(
    user: str, plan_id: int, body: AmountRequest, contract: NesteraContract = Depends(get_contract)
):
    return PlanResponse.from_plan(contract.withdraw_from_plan(user, plan_id, body.amount))


# -- groups --------------------------------------------------------------------


@app.post("/groups", response_model=GroupIdResponse, status_code=201)
def create_group(body: CreateGroupRequest, contract: NesteraContract = Depends(get_contract)):
    group_id = contract.create_group_save(
        body.creator, body.is_public, body.target_amount, body.max_members, body.contribution_type
    )
    return GroupIdResponse(group_id=group_id)


@app.get("/groups/{group_id}", response_model=GroupResponse)
def get_group(group_id: int, contract: NesteraContract = Depends(get_contract)):
    return GroupResponse.from_group(contract.get_group(group_id))


@app.post("/groups/{group_id}/join", response_model=GroupResponse)
def join_group(group_id: int, body: MemberRequest, contract: NesteraContract = Depends(get_contract)):
    contract.join_group_save(body.user, group_id)
    return GroupResponse.from_group(contract.get_group(group_id))


@app.post("/groups/{group_id}/contribute", response_model=GroupResponse)
def contribute(group_id: int, body: ContributeRequest, contract: NesteraContract = Depends(get_contract)):
    contract.contribute_to_group_save(body.user, group_id, body.amount)
    return GroupResponse.from_group(contract.get_group(group_id))


@app.get("/groups/{group_id}/members/{user}", response_model=MemberResponse)
def get_member(group_id: int, user: str, contract: NesteraContract = Depends(get_contract)):
    return MemberResponse(
        group_id=group_id,
        user=user,
        is_member=contract.is_group_member(user, group_id),
        contribution=contract.get_member_contribution(group_id, user),
    )
