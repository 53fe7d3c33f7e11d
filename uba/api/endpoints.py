"""API endpoints for UBA fee quotes and reconciled flows."""

import asyncio
from functools import partial

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, Request

from uba.client import UBAClient
from uba.fees.result import UBAFeeResult
from uba.models.bundle import BundleState, ModifiedFlow
from uba.models.types import normalize_symbol

logger = structlog.get_logger()

router = APIRouter()


def get_client(request: Request) -> UBAClient:
    """Dependency provider for the UBA client.

    Override this in tests to inject a prepared client:
        app.dependency_overrides[get_client] = lambda: client

    Returns:
        The client attached to the application at startup.
    """
    client = getattr(request.app.state, "uba_client", None)
    if client is None:
        raise HTTPException(status_code=503, detail="UBA client is not configured")
    return client


@router.get("/fees/{token}", response_model=UBAFeeResult)
async def get_fee_quote(
    token: str,
    deposit_chain_id: int = Query(alias="depositChainId", ge=0),
    refund_chain_id: int = Query(alias="refundChainId", ge=0),
    amount: int = Query(ge=0),
    block: int | None = Query(default=None, ge=0),
    refund_block: int | None = Query(default=None, alias="refundBlock", ge=0),
    relayer_gas_fee: int = Query(default=0, alias="relayerGasFee", ge=0),
    relayer_capital_fee_pct: int = Query(default=0, alias="relayerCapitalFeePct", ge=0),
    client: UBAClient = Depends(get_client),
) -> UBAFeeResult:
    """Quote every fee of a deposit of ``amount`` and its refund.

    Error Handling:
        - No bundle state for the chain, token or block: 404
        - Invalid query parameters: 422
    """
    logger.info(
        "fee_quote_requested",
        token=token,
        deposit_chain_id=deposit_chain_id,
        refund_chain_id=refund_chain_id,
        amount=amount,
        block=block,
    )
    quote = partial(
        client.get_uba_fee,
        deposit_chain_id,
        refund_chain_id,
        normalize_symbol(token),
        amount,
        evaluation_block=block,
        refund_evaluation_block=refund_block,
        relayer_gas_fee=relayer_gas_fee,
        relayer_capital_fee_pct=relayer_capital_fee_pct,
    )
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, quote)


@router.get("/flows/{chain_id}/{token}", response_model=list[ModifiedFlow])
async def get_flows(
    chain_id: int,
    token: str,
    from_block: int = Query(alias="fromBlock", ge=0),
    to_block: int = Query(alias="toBlock", ge=0),
    client: UBAClient = Depends(get_client),
) -> list[ModifiedFlow]:
    """Reconciled flows of a chain and token within a block range."""
    if from_block > to_block:
        raise HTTPException(status_code=422, detail="fromBlock must not be after toBlock")
    return client.get_modified_flows(chain_id, token, from_block, to_block)


@router.get("/bundles/{chain_id}/{token}/latest", response_model=BundleState)
async def get_latest_bundle(
    chain_id: int,
    token: str,
    client: UBAClient = Depends(get_client),
) -> BundleState:
    """Latest reconciled bundle of a chain and token."""
    return client.get_latest_bundle_state(chain_id, token)


@router.post("/update")
async def update_state(client: UBAClient = Depends(get_client)) -> dict[str, object]:
    """Reload bundles and reconcile every tracked chain and token."""
    loop = asyncio.get_running_loop()
    await loop.run_in_executor(None, client.update)
    return {"status": "ok", "chainIds": client.chain_ids, "tokens": client.tokens}
