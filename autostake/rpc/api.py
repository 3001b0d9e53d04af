from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import BaseModel
from typing import Optional
from ..core.runtime import Runtime
from ..core.factory import TokenFactory
from ..core.token import AutostakeToken
from ..core.ledger import FungibleLedger
from ..protocol.types.common import (
    ContractKind, DuplicateSalt, ProtocolError, Unauthorized, UnknownContract,
)
import logging

logger = logging.getLogger(__name__)

app = FastAPI(title="Autostake Node RPC")

# Enable CORS for dashboards
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
runtime: Optional[Runtime] = None

class CreateTokenRequest(BaseModel):
    salt: str
    name: str
    symbol: str
    fee_collector: str
    caller: str
    fee_bps: Optional[int] = None
    initial_supply: Optional[int] = None

class TransferRequest(BaseModel):
    sender: str
    recipient: str
    amount: int

class RewardAssetRequest(BaseModel):
    asset: str
    caller: str

class ScheduleRequest(BaseModel):
    start: int
    end: int
    rate_per_second: int
    caller: str

class ClaimRequest(BaseModel):
    account: str

def _runtime() -> Runtime:
    if not runtime:
        raise HTTPException(status_code=503, detail="Node not initialized")
    return runtime

def _error(e: ProtocolError) -> HTTPException:
    if isinstance(e, UnknownContract):
        status = 404
    elif isinstance(e, Unauthorized):
        status = 403
    elif isinstance(e, DuplicateSalt):
        status = 409
    else:
        status = 400
    return HTTPException(status_code=status, detail={"error": e.code, "message": str(e)})

def _contract(address: str, kind: ContractKind):
    try:
        return _runtime().get_contract(address, kind)
    except ProtocolError as e:
        raise _error(e)

def _token(address: str) -> AutostakeToken:
    return _contract(address, ContractKind.AUTOSTAKE_TOKEN)

def _factory(address: str) -> TokenFactory:
    return _contract(address, ContractKind.FACTORY)

@app.get("/status")
async def get_status():
    rt = _runtime()
    return {
        "network": rt.config.network_id,
        "chain_id": rt.config.chain_id,
        "height": rt.height,
        "time": rt.now(),
        "events": len(rt.events),
        "factories": [f.address for f in rt.contracts_of(ContractKind.FACTORY)],
        "reward_tokens": [t.address for t in rt.contracts_of(ContractKind.REWARD_TOKEN)],
        "tokens": [t.address for t in rt.contracts_of(ContractKind.AUTOSTAKE_TOKEN)],
    }

# ═══════════════════════════════════════════════════════════════════
# FACTORY
# ═══════════════════════════════════════════════════════════════════

@app.get("/factory/{address}/predict/{salt}")
async def predict_address(address: str, salt: str):
    factory = _factory(address)
    try:
        return {"factory": address, "salt": salt, "predicted_address": factory.compute_address(salt)}
    except ProtocolError as e:
        raise _error(e)

@app.get("/factory/{address}/tokens")
async def list_created(address: str):
    factory = _factory(address)
    return {"factory": address, "records": [r.model_dump() for r in factory.records]}

@app.post("/factory/{address}/tokens")
async def create_token(address: str, req: CreateTokenRequest):
    factory = _factory(address)
    try:
        _, record = factory.create_token(
            req.salt, req.name, req.symbol, req.fee_collector, req.caller,
            fee_bps=req.fee_bps, initial_supply=req.initial_supply,
        )
    except ProtocolError as e:
        raise _error(e)
    return record.model_dump()

# ═══════════════════════════════════════════════════════════════════
# AUTO-STAKE TOKENS
# ═══════════════════════════════════════════════════════════════════

@app.get("/token/{address}")
async def get_token(address: str):
    token = _token(address)
    schedule = token.schedule
    return {
        "address": token.address,
        "name": token.name,
        "symbol": token.symbol,
        "decimals": token.decimals,
        "owner": token.owner,
        "total_supply": str(token.total_supply),
        "fee_collector": token.fee_collector,
        "fee_bps": token.fee_bps,
        "reward_asset": token.reward_asset,
        "schedule": schedule.model_dump() if schedule else None,
        "reward_status": token.reward_status().value,
    }

@app.get("/token/{address}/balance/{account}")
async def get_balance(address: str, account: str):
    ledger = _runtime().contracts.get(address)
    if not isinstance(ledger, FungibleLedger):
        raise HTTPException(status_code=404, detail="Token not found")
    return {"token": address, "address": account, "balance": str(ledger.balance_of(account))}

@app.get("/token/{address}/earned/{account}")
async def get_earned(address: str, account: str):
    token = _token(address)
    state = token.reward_state(account)
    return {
        "token": address,
        "address": account,
        "earned": str(token.earned(account)),
        "accrued": str(state.accrued) if state else "0",
    }

@app.post("/token/{address}/transfer")
async def transfer(address: str, req: TransferRequest):
    ledger = _runtime().contracts.get(address)
    if not isinstance(ledger, FungibleLedger):
        raise HTTPException(status_code=404, detail="Token not found")
    try:
        ledger.transfer(req.sender, req.recipient, req.amount)
    except ProtocolError as e:
        raise _error(e)
    return {"status": "ok", "height": _runtime().height}

@app.post("/token/{address}/reward-asset")
async def set_reward_asset(address: str, req: RewardAssetRequest):
    token = _token(address)
    try:
        token.set_reward_asset(req.asset, req.caller)
    except ProtocolError as e:
        raise _error(e)
    return {"status": "ok", "reward_asset": req.asset}

@app.post("/token/{address}/schedule")
async def set_schedule(address: str, req: ScheduleRequest):
    token = _token(address)
    try:
        schedule = token.set_schedule(req.start, req.end, req.rate_per_second, req.caller)
    except ProtocolError as e:
        raise _error(e)
    return {"status": "ok", "schedule": schedule.model_dump()}

@app.post("/token/{address}/claim")
async def claim(address: str, req: ClaimRequest):
    token = _token(address)
    try:
        amount = token.claim(req.account)
    except ProtocolError as e:
        raise _error(e)
    return {"status": "ok", "account": req.account, "amount": str(amount)}

# ═══════════════════════════════════════════════════════════════════
# EVENTS & METRICS
# ═══════════════════════════════════════════════════════════════════

@app.get("/events")
async def get_events(event: Optional[str] = None,
                     address: Optional[str] = None,
                     from_block: int = 0,
                     to_block: Optional[int] = None):
    rt = _runtime()
    try:
        events = rt.events.get_past_events(event, address=address, from_block=from_block, to_block=to_block)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown event type: {event}")
    return {"events": [ev.model_dump(mode="json") for ev in events]}

@app.get("/metrics")
async def get_metrics():
    """
    Prometheus metrics endpoint.

    Returns metrics in Prometheus text format.
    """
    from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
    from ..observability.metrics import metrics_registry, update_metrics

    update_metrics(_runtime())
    return Response(
        content=generate_latest(metrics_registry),
        media_type=CONTENT_TYPE_LATEST
    )
