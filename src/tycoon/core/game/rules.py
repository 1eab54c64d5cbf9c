"""
Public rules API: actions, results and the engine entry points.

apply_action, apply_timeout and post_chat mutate the GameState they are
given in place. Every precondition is checked before the first mutation, so
a rejected result always leaves the state untouched.
"""

import random
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Union

from tycoon.core.game.board import Board
from tycoon.core.game.config import RuleSet
from tycoon.core.game.money import EventType
from tycoon.core.game.player import Ownership, PlayerState
from tycoon.core.game.resolution import (
    advance_turn,
    check_bankruptcy,
    check_win,
    move_forward,
    resolve_space,
    roll_dice,
)
from tycoon.core.game.spaces import SpaceType
from tycoon.core.game.state import ChatEntry, GameState
from tycoon.core.game.trade import Trade, TradeBundle

TRADE_MESSAGE_MAX_LENGTH = 140


class ActionType(Enum):
    """Types of actions a player can take."""

    ROLL = "roll"
    BUY = "buy"
    END_TURN = "end_turn"
    PAY_JAIL = "pay_jail"
    USE_PARDON = "use_pardon"
    BUILD_HOUSE = "build_house"
    SELL_HOUSE = "sell_house"
    MORTGAGE = "mortgage"
    UNMORTGAGE = "unmortgage"
    TRADE_OFFER = "trade_offer"
    TRADE_ACCEPT = "trade_accept"
    TRADE_REJECT = "trade_reject"
    TRADE_CANCEL = "trade_cancel"


TURN_GATED_ACTIONS = frozenset(
    {
        ActionType.ROLL,
        ActionType.BUY,
        ActionType.END_TURN,
        ActionType.PAY_JAIL,
        ActionType.USE_PARDON,
        ActionType.BUILD_HOUSE,
        ActionType.SELL_HOUSE,
        ActionType.MORTGAGE,
        ActionType.UNMORTGAGE,
    }
)

TRADE_ACTIONS = frozenset(
    {
        ActionType.TRADE_OFFER,
        ActionType.TRADE_ACCEPT,
        ActionType.TRADE_REJECT,
        ActionType.TRADE_CANCEL,
    }
)


class ErrorKind(Enum):
    """Why an action was rejected."""

    VALIDATION = "validation"
    VERSION_CONFLICT = "version_conflict"
    NOT_YOUR_TURN = "not_your_turn"
    NOT_FOUND = "not_found"
    GAME_FINISHED = "game_finished"


class Action:
    """Represents a game action that can be taken."""

    def __init__(self, action_type: Optional[ActionType], player_id: Optional[str] = None, **params: Any):
        self.action_type = action_type
        self.player_id = player_id
        self.params = params

    @property
    def is_turn_gated(self) -> bool:
        return self.action_type in TURN_GATED_ACTIONS

    @property
    def is_trade(self) -> bool:
        return self.action_type in TRADE_ACTIONS

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any], player_id: Optional[str] = None) -> "Action":
        """
        Build an action from a transport payload like {"type": "ROLL", ...}.

        The type is case-insensitive. Unknown types produce an action with
        action_type None, which the engine rejects as unsupported.
        """
        params = dict(payload)
        raw_type = str(params.pop("type", "")).strip().lower()
        params.pop("player_id", None)
        try:
            action_type: Optional[ActionType] = ActionType(raw_type)
        except ValueError:
            action_type = None
        return cls(action_type, player_id=player_id or payload.get("player_id"), **params)

    def __repr__(self) -> str:
        name = self.action_type.value if self.action_type else "unsupported"
        return f"Action({name}, player={self.player_id}, {self.params})"


@dataclass
class ActionResult:
    """Outcome of an engine or coordinator call."""

    accepted: bool
    reason: Optional[str] = None
    payload: Dict[str, Any] = field(default_factory=dict)
    state: Optional[GameState] = None
    error: Optional[ErrorKind] = None

    @classmethod
    def ok(cls, state: GameState, payload: Optional[Dict[str, Any]] = None) -> "ActionResult":
        return cls(accepted=True, payload=payload or {}, state=state)

    @classmethod
    def reject(cls, reason: str, error: ErrorKind = ErrorKind.VALIDATION) -> "ActionResult":
        return cls(accepted=False, reason=reason, error=error)


# A handler returns either a rejection or a callable that performs the mutation
# and returns its payload. Nothing is mutated until the callable runs.
Mutation = Callable[[], Dict[str, Any]]


class _Context:
    def __init__(self, state: GameState, board: Board, rules: RuleSet, rng: random.Random, now: float):
        self.state = state
        self.board = board
        self.rules = rules
        self.rng = rng
        self.now = now

    def settle(self, player: PlayerState, advance: bool) -> None:
        """Run bankruptcy and win checks, then advance the turn if required."""
        state = self.state
        check_bankruptcy(state, self.now, first=player)
        if check_win(state, self.now):
            return
        if advance or state.get_current_player().bankrupt:
            advance_turn(state, self.rules, self.now)


def apply_action(
    state: GameState,
    action: Action,
    board: Board,
    rules: RuleSet,
    rng: random.Random,
    now: Optional[float] = None,
) -> ActionResult:
    """
    Validate and apply one action to the game.

    Returns:
        An accepted result carrying the mutated state and a payload, or a
        rejected result with a reason and error kind and no mutation.
    """
    now = time.time() if now is None else now
    if state.finished:
        return ActionResult.reject("Game is already finished", ErrorKind.GAME_FINISHED)
    if action.action_type is None:
        return ActionResult.reject("Unsupported action")

    ctx = _Context(state, board, rules, rng, now)

    if action.is_turn_gated:
        player = state.get_current_player()
        if player.bankrupt:
            return ActionResult.reject("Invalid current player")
        if action.player_id is not None and action.player_id != player.id:
            return ActionResult.reject("Not your turn", ErrorKind.NOT_YOUR_TURN)
    else:
        player = state.get_player(action.player_id)
        if player is None:
            return ActionResult.reject("Unknown player")
        if player.bankrupt:
            return ActionResult.reject("Bankrupt players cannot trade")

    handler = _HANDLERS[action.action_type]
    outcome = handler(ctx, player, action.params)
    if isinstance(outcome, ActionResult):
        return outcome

    payload = outcome()
    state.version += 1
    return ActionResult.ok(state, payload)


def apply_timeout(state: GameState, rules: RuleSet, now: Optional[float] = None) -> ActionResult:
    """
    Force the active player's turn to end after its deadline.

    The penalty grows with each timeout the player accumulates.
    """
    now = time.time() if now is None else now
    if state.finished:
        return ActionResult.reject("Game is already finished", ErrorKind.GAME_FINISHED)

    player = state.get_current_player()
    player.timeout_count += 1
    penalty = player.timeout_count * rules.timeout_penalty_step
    player.cash -= penalty
    state.log_event(EventType.TIMEOUT, player.id, now, penalty=penalty, timeout_count=player.timeout_count)

    check_bankruptcy(state, now, first=player)
    if not check_win(state, now):
        advance_turn(state, rules, now)
    state.version += 1
    return ActionResult.ok(
        state,
        {"player_id": player.id, "penalty": penalty, "timeout_count": player.timeout_count},
    )


def post_chat(
    state: GameState,
    player_id: str,
    text: str,
    now: Optional[float] = None,
    history_limit: int = 50,
    max_length: int = 200,
) -> ActionResult:
    """Append a chat line from a session player. Does not change the version."""
    now = time.time() if now is None else now
    player = state.get_player(player_id)
    if player is None:
        return ActionResult.reject("Only session players can chat")
    text = (text or "").strip()
    if not text:
        return ActionResult.reject("Message is empty")

    entry = ChatEntry(player_id=player.id, name=player.name, text=text[:max_length], at=now)
    state.chat.append(entry)
    if len(state.chat) > history_limit:
        del state.chat[: len(state.chat) - history_limit]
    return ActionResult.ok(state, {"entry": entry.to_dict()})


# === TURN ACTIONS ===


def _roll(ctx: _Context, player: PlayerState, params: Mapping[str, Any]):
    if player.in_jail:
        return lambda: _jail_roll(ctx, player)

    def mutate() -> Dict[str, Any]:
        state = ctx.state
        d1, d2 = roll_dice(ctx.rng)
        total = d1 + d2
        space = move_forward(state, player, ctx.board, ctx.rules, total, ctx.now)
        state.log_event(EventType.DICE_ROLL, player.id, ctx.now, d1=d1, d2=d2, landed=space.index)
        resolve_space(state, player, space, ctx.board, ctx.rules, ctx.rng, ctx.now)
        ctx.settle(player, advance=True)
        return {
            "d1": d1,
            "d2": d2,
            "total": total,
            "doubles": d1 == d2,
            "position": player.position,
            "space": space.to_dict(),
        }

    return mutate


def _jail_roll(ctx: _Context, player: PlayerState) -> Dict[str, Any]:
    state, board, rules = ctx.state, ctx.board, ctx.rules
    d1, d2 = roll_dice(ctx.rng)
    total = d1 + d2
    payload: Dict[str, Any] = {"d1": d1, "d2": d2, "total": total, "doubles": d1 == d2}
    state.log_event(EventType.JAIL_ROLL, player.id, ctx.now, d1=d1, d2=d2)

    if d1 != d2:
        player.jail_turns += 1
        if player.jail_turns < rules.max_jail_turns:
            advance_turn(state, rules, ctx.now)
            payload.update(stayed_in_jail=True, position=player.position)
            return payload
        player.cash -= rules.jail_fine
        event, flag, fine = EventType.JAIL_FORCE_OUT, "jail_force_out", rules.jail_fine
    else:
        event, flag, fine = EventType.JAIL_ESCAPE, "jail_escape", 0

    # The release move starts from the jail space and never pays salary
    player.release_from_jail()
    player.position = board.jail_index
    space = move_forward(state, player, board, rules, total, ctx.now, collect_go=False)
    state.log_event(event, player.id, ctx.now, landed=space.index, fine=fine)
    resolve_space(state, player, space, board, rules, ctx.rng, ctx.now)
    ctx.settle(player, advance=True)
    payload.update({flag: True, "position": player.position, "space": space.to_dict()})
    return payload


def _pay_jail(ctx: _Context, player: PlayerState, params: Mapping[str, Any]):
    if not player.in_jail:
        return ActionResult.reject("Not in jail")

    def mutate() -> Dict[str, Any]:
        player.cash -= ctx.rules.jail_fine
        player.release_from_jail()
        ctx.state.log_event(EventType.PAY_JAIL, player.id, ctx.now, fine=ctx.rules.jail_fine)
        ctx.settle(player, advance=False)
        return {"paid_jail": True}

    return mutate


def _use_pardon(ctx: _Context, player: PlayerState, params: Mapping[str, Any]):
    if not player.in_jail:
        return ActionResult.reject("Not in jail")
    if player.pardon_cards < 1:
        return ActionResult.reject("No Pardon card")

    def mutate() -> Dict[str, Any]:
        player.pardon_cards -= 1
        player.release_from_jail()
        ctx.state.log_event(EventType.USE_PARDON, player.id, ctx.now)
        return {"used_pardon": True}

    return mutate


def _buy(ctx: _Context, player: PlayerState, params: Mapping[str, Any]):
    space = ctx.board.get_space(player.position)
    if not space.is_ownable:
        return ActionResult.reject("Not purchasable")
    if space.index in ctx.state.ownership:
        return ActionResult.reject("Already owned")
    if player.cash < space.price:
        return ActionResult.reject("Insufficient cash")

    def mutate() -> Dict[str, Any]:
        player.cash -= space.price
        ctx.state.ownership[space.index] = Ownership(owner_id=player.id)
        ctx.state.log_event(EventType.PURCHASE, player.id, ctx.now, space=space.index, price=space.price)
        return {"bought": space.index}

    return mutate


def _end_turn(ctx: _Context, player: PlayerState, params: Mapping[str, Any]):
    def mutate() -> Dict[str, Any]:
        ctx.state.log_event(EventType.END_TURN, player.id, ctx.now)
        advance_turn(ctx.state, ctx.rules, ctx.now)
        return {}

    return mutate


# === PROPERTY MANAGEMENT ===


def _owned_position(ctx: _Context, player: PlayerState, params: Mapping[str, Any]):
    """Resolve the position parameter to a space the player owns, or a rejection."""
    try:
        position = int(params.get("position"))
    except (TypeError, ValueError):
        return ActionResult.reject("Missing or invalid position")
    if not 0 <= position < len(ctx.board):
        return ActionResult.reject("Missing or invalid position")
    ownership = ctx.state.ownership.get(position)
    if ownership is None or ownership.owner_id != player.id:
        return ActionResult.reject("You do not own this space")
    return ctx.board.get_space(position), ownership


def _build_house(ctx: _Context, player: PlayerState, params: Mapping[str, Any]):
    found = _owned_position(ctx, player, params)
    if isinstance(found, ActionResult):
        return found
    space, ownership = found
    if space.space_type != SpaceType.PROPERTY:
        return ActionResult.reject("Houses can only be built on properties")
    if ownership.mortgaged:
        return ActionResult.reject("Property is mortgaged")
    group = ctx.board.get_group(space.group)
    if group is None:
        return ActionResult.reject("Property has no color group")
    if ownership.houses >= group.max_houses:
        return ActionResult.reject("Maximum houses reached")
    if not ctx.state.owns_full_group(player.id, ctx.board, space.group):
        return ActionResult.reject("You must own the full color group")
    if player.cash < group.house_price:
        return ActionResult.reject("Insufficient cash")

    def mutate() -> Dict[str, Any]:
        player.cash -= group.house_price
        ownership.houses += 1
        ctx.state.log_event(
            EventType.BUILD_HOUSE, player.id, ctx.now, space=space.index, houses=ownership.houses
        )
        return {"position": space.index, "houses": ownership.houses}

    return mutate


def _sell_house(ctx: _Context, player: PlayerState, params: Mapping[str, Any]):
    found = _owned_position(ctx, player, params)
    if isinstance(found, ActionResult):
        return found
    space, ownership = found
    if ownership.houses < 1:
        return ActionResult.reject("No houses to sell")
    refund = ctx.board.get_group(space.group).house_price // 2

    def mutate() -> Dict[str, Any]:
        player.cash += refund
        ownership.houses -= 1
        ctx.state.log_event(
            EventType.SELL_HOUSE, player.id, ctx.now, space=space.index, houses=ownership.houses, refund=refund
        )
        return {"position": space.index, "houses": ownership.houses, "refund": refund}

    return mutate


def _mortgage(ctx: _Context, player: PlayerState, params: Mapping[str, Any]):
    found = _owned_position(ctx, player, params)
    if isinstance(found, ActionResult):
        return found
    space, ownership = found
    if ownership.houses > 0:
        return ActionResult.reject("Sell all houses before mortgaging")
    if ownership.mortgaged:
        return ActionResult.reject("Already mortgaged")
    value = ctx.rules.mortgage_value(space.price)

    def mutate() -> Dict[str, Any]:
        player.cash += value
        ownership.mortgaged = True
        ctx.state.log_event(EventType.MORTGAGE, player.id, ctx.now, space=space.index, amount=value)
        return {"position": space.index, "amount": value}

    return mutate


def _unmortgage(ctx: _Context, player: PlayerState, params: Mapping[str, Any]):
    found = _owned_position(ctx, player, params)
    if isinstance(found, ActionResult):
        return found
    space, ownership = found
    if not ownership.mortgaged:
        return ActionResult.reject("Not mortgaged")
    cost = ctx.rules.unmortgage_cost(space.price)
    if player.cash < cost:
        return ActionResult.reject("Insufficient cash")

    def mutate() -> Dict[str, Any]:
        player.cash -= cost
        ownership.mortgaged = False
        ctx.state.log_event(EventType.UNMORTGAGE, player.id, ctx.now, space=space.index, amount=cost)
        return {"position": space.index, "amount": cost}

    return mutate


# === TRADING ===


def _bundle_issue(ctx: _Context, holder: PlayerState, bundle: TradeBundle) -> Optional[str]:
    """Check that a player currently holds everything in a bundle."""
    if bundle.cash < 0 or bundle.pardon_cards < 0:
        return "Trade amounts must be non-negative"
    if bundle.cash > holder.cash:
        return f"{holder.name} does not have ${bundle.cash}"
    if bundle.pardon_cards > holder.pardon_cards:
        return f"{holder.name} does not have {bundle.pardon_cards} pardon cards"
    for index in sorted(bundle.properties):
        ownership = ctx.state.ownership.get(index)
        if ownership is None or ownership.owner_id != holder.id:
            return f"{holder.name} does not own space {index}"
        if ownership.houses > 0:
            return f"Sell houses on space {index} before trading it"
    return None


def _trade_offer(ctx: _Context, player: PlayerState, params: Mapping[str, Any]):
    recipient = ctx.state.get_player(params.get("to_id"))
    if recipient is None:
        return ActionResult.reject("Unknown trade recipient")
    if recipient.id == player.id:
        return ActionResult.reject("Cannot trade with yourself")
    if recipient.bankrupt:
        return ActionResult.reject("Recipient is bankrupt")
    try:
        offer = TradeBundle.from_dict(params.get("offer"))
        request = TradeBundle.from_dict(params.get("request"))
    except (TypeError, ValueError, AttributeError):
        return ActionResult.reject("Malformed trade bundle")
    if offer.is_empty() and request.is_empty():
        return ActionResult.reject("Trade must include something")
    issue = _bundle_issue(ctx, player, offer) or _bundle_issue(ctx, recipient, request)
    if issue:
        return ActionResult.reject(issue)
    message = params.get("message")
    if message is not None:
        message = str(message).strip()[:TRADE_MESSAGE_MAX_LENGTH] or None

    def mutate() -> Dict[str, Any]:
        state = ctx.state
        trade = Trade(
            id=state.next_trade_id,
            from_id=player.id,
            to_id=recipient.id,
            offer=offer,
            request=request,
            message=message,
            created_at=ctx.now,
        )
        state.next_trade_id += 1
        state.pending_trades[trade.id] = trade
        state.log_event(EventType.TRADE_PROPOSED, player.id, ctx.now, trade_id=trade.id, to_id=recipient.id)
        return {"trade_id": trade.id}

    return mutate


def _find_trade(ctx: _Context, params: Mapping[str, Any]):
    try:
        trade_id = int(params.get("trade_id"))
    except (TypeError, ValueError):
        return ActionResult.reject("Missing or invalid trade_id")
    trade = ctx.state.pending_trades.get(trade_id)
    if trade is None:
        return ActionResult.reject("Trade not found")
    return trade


def _transfer_bundle(ctx: _Context, giver: PlayerState, taker: PlayerState, bundle: TradeBundle) -> None:
    giver.cash -= bundle.cash
    taker.cash += bundle.cash
    giver.pardon_cards -= bundle.pardon_cards
    taker.pardon_cards += bundle.pardon_cards
    for index in bundle.properties:
        # Mortgage flag travels with the property
        ctx.state.ownership[index].owner_id = taker.id


def _trade_accept(ctx: _Context, player: PlayerState, params: Mapping[str, Any]):
    trade = _find_trade(ctx, params)
    if isinstance(trade, ActionResult):
        return trade
    if trade.to_id != player.id:
        return ActionResult.reject("Only the recipient can accept this trade")
    proposer = ctx.state.get_player(trade.from_id)
    if proposer is None or proposer.bankrupt:
        return ActionResult.reject("Proposer can no longer trade")
    issue = _bundle_issue(ctx, proposer, trade.offer) or _bundle_issue(ctx, player, trade.request)
    if issue:
        return ActionResult.reject(issue)

    def mutate() -> Dict[str, Any]:
        _transfer_bundle(ctx, proposer, player, trade.offer)
        _transfer_bundle(ctx, player, proposer, trade.request)
        del ctx.state.pending_trades[trade.id]
        ctx.state.log_event(EventType.TRADE_ACCEPTED, player.id, ctx.now, trade_id=trade.id)
        return {"trade_id": trade.id, "accepted": True}

    return mutate


def _trade_reject(ctx: _Context, player: PlayerState, params: Mapping[str, Any]):
    trade = _find_trade(ctx, params)
    if isinstance(trade, ActionResult):
        return trade
    if trade.to_id != player.id:
        return ActionResult.reject("Only the recipient can reject this trade")

    def mutate() -> Dict[str, Any]:
        del ctx.state.pending_trades[trade.id]
        ctx.state.log_event(EventType.TRADE_REJECTED, player.id, ctx.now, trade_id=trade.id)
        return {"trade_id": trade.id, "rejected": True}

    return mutate


def _trade_cancel(ctx: _Context, player: PlayerState, params: Mapping[str, Any]):
    trade = _find_trade(ctx, params)
    if isinstance(trade, ActionResult):
        return trade
    if trade.from_id != player.id:
        return ActionResult.reject("Only the proposer can cancel this trade")

    def mutate() -> Dict[str, Any]:
        del ctx.state.pending_trades[trade.id]
        ctx.state.log_event(EventType.TRADE_CANCELLED, player.id, ctx.now, trade_id=trade.id)
        return {"trade_id": trade.id, "cancelled": True}

    return mutate


_HANDLERS: Dict[ActionType, Callable[..., Union[ActionResult, Mutation]]] = {
    ActionType.ROLL: _roll,
    ActionType.BUY: _buy,
    ActionType.END_TURN: _end_turn,
    ActionType.PAY_JAIL: _pay_jail,
    ActionType.USE_PARDON: _use_pardon,
    ActionType.BUILD_HOUSE: _build_house,
    ActionType.SELL_HOUSE: _sell_house,
    ActionType.MORTGAGE: _mortgage,
    ActionType.UNMORTGAGE: _unmortgage,
    ActionType.TRADE_OFFER: _trade_offer,
    ActionType.TRADE_ACCEPT: _trade_accept,
    ActionType.TRADE_REJECT: _trade_reject,
    ActionType.TRADE_CANCEL: _trade_cancel,
}
