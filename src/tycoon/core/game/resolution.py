"""
Effect resolution shared by the action handlers: movement, landed-space
effects, cards, rent, bankruptcy, win detection and turn advancement.

Every function here mutates the GameState it is given and never performs
validation; callers check preconditions first.
"""

import random
from typing import List, Optional, Tuple

from tycoon.core.game.board import Board
from tycoon.core.game.cards import DECKS, Card, EffectType, draw_card
from tycoon.core.game.config import RuleSet
from tycoon.core.game.money import EventType
from tycoon.core.game.player import PlayerState
from tycoon.core.game.spaces import DECK_FOR_SPACE, Space, SpaceType
from tycoon.core.game.state import STATUS_FINISHED, GameState


def roll_dice(rng: random.Random) -> Tuple[int, int]:
    """Roll two six-sided dice."""
    return rng.randint(1, 6), rng.randint(1, 6)


def collect_salary(state: GameState, player: PlayerState, rules: RuleSet, now: float) -> None:
    player.cash += rules.go_salary
    state.log_event(EventType.PASS_GO, player.id, now, amount=rules.go_salary)


def move_forward(
    state: GameState,
    player: PlayerState,
    board: Board,
    rules: RuleSet,
    steps: int,
    now: float,
    collect_go: bool = True,
) -> Space:
    """
    Move a player forward, paying salary when the move crosses or lands on Start.

    Returns:
        The space the player landed on
    """
    size = len(board)
    old_position = player.position
    distance_to_start = (board.start_index - old_position) % size or size
    player.position = (old_position + steps) % size
    if collect_go and steps >= distance_to_start:
        collect_salary(state, player, rules, now)
    return board.get_space(player.position)


def send_to_jail(state: GameState, player: PlayerState, board: Board, now: float) -> None:
    player.position = board.jail_index
    player.in_jail = True
    player.jail_turns = 0
    state.log_event(EventType.GO_TO_JAIL, player.id, now)


def resolve_space(
    state: GameState,
    player: PlayerState,
    space: Space,
    board: Board,
    rules: RuleSet,
    rng: random.Random,
    now: float,
    depth: int = 0,
) -> None:
    """
    Apply the effect of the space a player has just landed on.

    Card relocations recurse with depth + 1; past rules.max_resolution_depth
    the chain is cut and a resolution_capped event is logged.
    """
    if depth > rules.max_resolution_depth:
        state.log_event(EventType.RESOLUTION_CAPPED, player.id, now, space=space.index, depth=depth)
        return

    space_type = space.space_type
    if space_type == SpaceType.TAX:
        player.cash -= space.amount
        state.bank.collect(space.amount)
        state.log_event(EventType.TAX_PAYMENT, player.id, now, amount=space.amount)
    elif space_type == SpaceType.TAX_REFUND:
        player.cash += space.amount
        state.log_event(EventType.TAX_REFUND, player.id, now, amount=space.amount)
    elif space_type == SpaceType.FREE_PARKING:
        payout = state.bank.pay_out()
        player.cash += payout
        state.log_event(EventType.VACATION_PAYOUT, player.id, now, amount=payout)
    elif space_type == SpaceType.GO_TO_JAIL:
        send_to_jail(state, player, board, now)
    elif space_type in DECK_FOR_SPACE:
        deck = DECK_FOR_SPACE[space_type]
        card = draw_card(state.card_decks.setdefault(deck, []), DECKS[deck], rng)
        state.log_event(EventType.CARD_DRAW, player.id, now, deck=deck, description=card.description)
        apply_card(state, player, card, board, rules, rng, now, depth)
    elif space.is_ownable:
        pay_rent(state, player, space, board, rules, rng, now)


def apply_card(
    state: GameState,
    player: PlayerState,
    card: Card,
    board: Board,
    rules: RuleSet,
    rng: random.Random,
    now: float,
    depth: int = 0,
) -> None:
    """Execute a card's effect for the player who drew it."""
    effect = card.effect
    kind = effect.effect_type

    if kind == EffectType.CASH:
        player.cash += effect.amount
        if effect.amount < 0:
            state.bank.collect(-effect.amount)

    elif kind == EffectType.MOVE_TO:
        old_position = player.position
        player.position = effect.to % len(board)
        if player.position < old_position:
            collect_salary(state, player, rules, now)
        resolve_space(state, player, board.get_space(player.position), board, rules, rng, now, depth + 1)

    elif kind == EffectType.MOVE_BACK:
        player.position = (player.position - effect.amount) % len(board)
        resolve_space(state, player, board.get_space(player.position), board, rules, rng, now, depth + 1)

    elif kind == EffectType.GO_TO_JAIL:
        send_to_jail(state, player, board, now)

    elif kind == EffectType.PARDON:
        player.pardon_cards += 1
        state.log_event(EventType.PARDON_RECEIVED, player.id, now)

    elif kind == EffectType.EACH_PLAYER:
        # Positive amount collects from everyone else, negative pays everyone
        for other in state.get_active_players():
            if other.id == player.id:
                continue
            player.cash += effect.amount
            other.cash -= effect.amount
        state.log_event(EventType.EACH_PLAYER, player.id, now, amount=effect.amount)

    elif kind == EffectType.RENOVATION:
        total = 0
        for index in state.owned_indexes(player.id):
            space = board.get_space(index)
            group = board.get_group(space.group)
            if group is None:
                continue
            houses = state.ownership[index].houses
            if houses >= group.max_houses:
                total += effect.hotel_cost
            else:
                total += houses * effect.house_cost
        player.cash -= total
        state.bank.collect(total)
        state.log_event(EventType.RENOVATION, player.id, now, amount=total)

    elif kind in (EffectType.NEAREST_RAILROAD, EffectType.NEAREST_UTILITY):
        target_type = SpaceType.RAILROAD if kind == EffectType.NEAREST_RAILROAD else SpaceType.UTILITY
        target = board.find_next_of_type(player.position, target_type)
        if target is None:
            return
        if target <= player.position:
            collect_salary(state, player, rules, now)
        player.position = target
        resolve_space(state, player, board.get_space(target), board, rules, rng, now, depth + 1)

    elif kind == EffectType.RANDOM_PROPERTY:
        candidates = board.indexes_of_type(SpaceType.PROPERTY)
        if not candidates:
            return
        target = rng.choice(candidates)
        old_position = player.position
        player.position = target
        if target < old_position:
            collect_salary(state, player, rules, now)
        state.log_event(EventType.RANDOM_PROPERTY, player.id, now, space=target)
        resolve_space(state, player, board.get_space(target), board, rules, rng, now, depth + 1)


def calculate_rent(
    state: GameState,
    space: Space,
    owner: PlayerState,
    board: Board,
    rules: RuleSet,
    dice_total: int = 0,
) -> int:
    """
    Calculate rent owed on an owned space.

    Args:
        dice_total: Dice total used for utilities
    """
    ownership = state.ownership[space.index]

    if space.space_type == SpaceType.RAILROAD:
        owned = state.count_owned_of_type(owner.id, board, SpaceType.RAILROAD)
        if not space.rent:
            return 0
        return space.rent[min(owned - 1, len(space.rent) - 1)]

    if space.space_type == SpaceType.UTILITY:
        owned = state.count_owned_of_type(owner.id, board, SpaceType.UTILITY)
        return dice_total * rules.utility_multiplier(owned)

    if space.rent:
        rent = space.rent[min(ownership.houses, len(space.rent) - 1)]
    else:
        rent = max(10, space.price // 10)
    if (
        ownership.houses == 0
        and rules.double_rent_on_set
        and state.owns_full_group(owner.id, board, space.group)
    ):
        rent *= 2
    return rent


def pay_rent(
    state: GameState,
    player: PlayerState,
    space: Space,
    board: Board,
    rules: RuleSet,
    rng: random.Random,
    now: float,
) -> None:
    ownership = state.ownership.get(space.index)
    if ownership is None or ownership.owner_id == player.id or ownership.mortgaged:
        return
    owner = state.get_player(ownership.owner_id)
    if owner is None:
        return
    if rules.jail_blocks_rent and owner.in_jail:
        return

    dice_total = 0
    if space.space_type == SpaceType.UTILITY:
        d1, d2 = roll_dice(rng)
        dice_total = d1 + d2
        state.log_event(EventType.UTILITY_ROLL, player.id, now, d1=d1, d2=d2)

    rent = calculate_rent(state, space, owner, board, rules, dice_total)
    player.cash -= rent
    owner.cash += rent
    state.log_event(
        EventType.RENT_PAYMENT,
        player.id,
        now,
        owner_id=owner.id,
        space=space.index,
        amount=rent,
    )


def check_bankruptcy(state: GameState, now: float, first: Optional[PlayerState] = None) -> List[str]:
    """
    Mark every solvent-looking player with negative cash as bankrupt.

    A bankrupt player's cash is zeroed, their ownership records return to
    the bank and any pending trade they are party to is dropped.

    Returns:
        Ids of players bankrupted by this check
    """
    candidates = list(state.players)
    if first is not None:
        candidates.sort(key=lambda p: p.id != first.id)

    bankrupted = []
    for player in candidates:
        if player.bankrupt or player.cash >= 0:
            continue
        player.bankrupt = True
        player.cash = 0
        player.release_from_jail()
        released = state.owned_indexes(player.id)
        for index in released:
            del state.ownership[index]
        dropped = [tid for tid, trade in state.pending_trades.items() if trade.involves(player.id)]
        for trade_id in dropped:
            del state.pending_trades[trade_id]
        state.log_event(EventType.BANKRUPTCY, player.id, now, released=released, dropped_trades=dropped)
        bankrupted.append(player.id)
    return bankrupted


def check_win(state: GameState, now: float) -> bool:
    """Finish the game when exactly one player remains solvent."""
    if state.status == STATUS_FINISHED:
        return True
    remaining = state.get_active_players()
    if len(remaining) != 1:
        return False
    state.status = STATUS_FINISHED
    state.winner = remaining[0].id
    state.log_event(EventType.GAME_END, remaining[0].id, now, winner=remaining[0].id)
    return True


def advance_turn(state: GameState, rules: RuleSet, now: float) -> None:
    """Pass the turn to the next non-bankrupt seat and reset the deadline."""
    count = len(state.players)
    index = (state.turn.active_player_index + 1) % count
    for _ in range(count):
        if not state.players[index].bankrupt:
            break
        index = (index + 1) % count
    state.turn.active_player_index = index
    state.turn.started_at = now
    state.turn.deadline_at = now + rules.turn_time_sec
    state.log_event(EventType.TURN_START, state.players[index].id, now, deadline_at=state.turn.deadline_at)
