"""
app/flow/engine.py

Purpose: Multi-step flow runner

- One active flow per user, persisted in the flow store
- Routes every message of a user in a flow to the current step
- /cancel aborts any flow at any step
- Applies step results (advance, complete, reject, cancel)
"""

from datetime import datetime
from typing import Dict, Optional

from app.flow.context import UpdateContext
from app.flow.states import (
    Advance,
    Cancel,
    Complete,
    FlowDefinition,
    FlowId,
    FlowState,
    Reject,
)
from app.core.logging import get_logger, LogContext
from utils.constants import CANCEL_COMMAND, FLOW_CANCELLED_MESSAGE

logger = get_logger(__name__)


class FlowEngine:
    """
    Drives registered flows from persisted FlowState.
    
    No closures survive between updates: everything a step needs is in the
    stored state, so any inbound call can resume any flow.
    """
    
    def __init__(self, store, definitions: Dict[FlowId, FlowDefinition], timeout_minutes: int = 0):
        self.store = store
        self.definitions = definitions
        self.timeout_minutes = timeout_minutes
    
    async def active_flow(self, user_id: int) -> Optional[FlowState]:
        doc = await self.store.get(user_id)
        if not doc:
            return None
        return FlowState.from_document(doc)
    
    def is_expired(self, state: FlowState) -> bool:
        return state.is_expired(self.timeout_minutes)
    
    async def discard(self, user_id: int):
        await self.store.delete(user_id)
    
    async def enter(self, ctx: UpdateContext, flow_id: FlowId):
        """
        Starts a flow for the sender, replacing any flow already active.
        """
        definition = self.definitions[flow_id]
        if definition.admin_only and not ctx.is_admin:
            logger.warning(f"Non-admin {ctx.user_id} tried to enter {flow_id.value}")
            return
        
        state = FlowState(flow_id=flow_id)
        await self.store.save(ctx.user_id, state.to_document())
        logger.info(f"Entered flow {flow_id.value}")
        await ctx.reply(definition.entry_prompt)
    
    async def cancel(self, ctx: UpdateContext, message: Optional[str] = None):
        await self.store.delete(ctx.user_id)
        logger.info("Flow cancelled")
        await ctx.reply(message or FLOW_CANCELLED_MESSAGE, menu=True)
    
    async def handle(self, ctx: UpdateContext, state: FlowState):
        """
        Feeds one message to the current step of the user's flow.
        """
        with LogContext(flow=state.flow_id.value, step=state.step):
            command, _ = ctx.message.command()
            if command == CANCEL_COMMAND:
                await self.cancel(ctx)
                return
            
            definition = self.definitions[state.flow_id]
            if state.step >= len(definition.steps):
                logger.error("Flow state points past the last step, discarding")
                await self.cancel(ctx)
                return
            
            step = definition.steps[state.step]
            result = await step(ctx, ctx.message.text, dict(state.scratch))
            
            if isinstance(result, Reject):
                logger.info("Step input rejected")
                await ctx.reply(result.message, markdown=True)
            
            elif isinstance(result, Advance):
                if state.step + 1 >= len(definition.steps):
                    raise RuntimeError(f"{state.flow_id.value} cannot advance past its last step")
                state.step += 1
                state.scratch = result.scratch
                state.updated_at = datetime.utcnow()
                await self.store.save(ctx.user_id, state.to_document())
                logger.info(f"Advanced to step {state.step}")
                await ctx.reply(result.reply, markdown=True)
            
            elif isinstance(result, Complete):
                # Clear first so a failing completion cannot leave the user stuck
                await self.store.delete(ctx.user_id)
                logger.info("Flow completed")
                await definition.on_complete(ctx, result.result)
            
            elif isinstance(result, Cancel):
                await self.cancel(ctx, result.message)
            
            else:
                raise TypeError(f"Unknown step result: {result!r}")
