"""
Build Choice Scoring

Compares a player's build choices against the winrate rankings of the
same champion and patch:
- Items, slot by slot, with boots exempt
- Categorical choices (keystone, summoner spells, skill order, starting items)
- The core build itself, ranked by Wilson lower bound with core family pooling
"""

from __future__ import annotations

from loguru import logger

from src.analytics.counters import CategoricalCounter, RankedChoice, WinStats
from src.analytics.curves import (
    clamp_score,
    penalty_to_score,
    sample_confidence,
    wilson_lower_bound,
)
from src.models.aggregate import ChampionPatchAggregate, CoreAggregate
from src.models.config import ChoiceConfig, ItemsConfig
from src.models.score import BaselineSource, BuildChoiceResult, ItemPenaltyDetail
from src.processors.build_keys import ItemCatalog, core_overlap

# Cores sharing this many items with the player's core form its family
CORE_FAMILY_OVERLAP = 2


def _pct(fraction: float) -> float:
    return round(fraction * 100, 2)


def _rank_of(key: str, ranked: list[RankedChoice]) -> int | None:
    for position, choice in enumerate(ranked, start=1):
        if choice.key == key:
            return position
    return None


def _gap_penalty(top_winrate: float, player_winrate: float, config: ChoiceConfig) -> float:
    gap_points = max(0.0, (top_winrate - player_winrate) * 100)
    return min(config.max_penalty, gap_points * config.penalty_per_point)


def score_item_slot(
    slot: int,
    item_id: int,
    counter: CategoricalCounter,
    config: ItemsConfig,
) -> ItemPenaltyDetail:
    """
    Penalty for one item in one inventory slot.

    Items ranked in the top ``top_n`` of their slot cost nothing; lower
    ranked items cost their winrate gap to the best item, capped; items
    without enough games to be ranked cost ``unknown_penalty``.

    Args:
        slot: Inventory slot (1-6)
        item_id: Item in that slot
        counter: Slot counter from the core or champion baseline
        config: Item penalty constants

    Returns:
        Penalty detail for the slot
    """
    detail = ItemPenaltyDetail(slot=slot, item_id=item_id)

    if ItemCatalog.is_boots(item_id):
        detail.reason = "boots"
        return detail

    stats = counter.get(item_id)
    if stats is not None:
        detail.games = stats.games
        if stats.games > 0:
            detail.player_winrate = _pct(stats.winrate)

    ranked = counter.ranked(config.min_games)
    if not ranked:
        detail.reason = "no_data"
        return detail

    top = ranked[0]
    detail.top_winrate = _pct(top.winrate)
    rank = _rank_of(str(item_id), ranked)
    detail.rank = rank

    if rank is None:
        detail.reason = "unranked"
        detail.penalty = config.unknown_penalty
    elif rank <= config.top_n:
        detail.in_top_n = True
    else:
        detail.reason = "suboptimal"
        detail.penalty = _gap_penalty(top.winrate, stats.winrate, config)
    return detail


def score_items(
    items: list[int],
    baseline: CoreAggregate,
    config: ItemsConfig,
) -> tuple[float | None, list[ItemPenaltyDetail]]:
    """
    Score the final inventory slot by slot.

    Args:
        items: Final item ids in slot order (0 = empty)
        baseline: Core or champion aggregate supplying the slot counters
        config: Item penalty constants

    Returns:
        (items score, per-slot details); the score is None when no slot
        had ranking data
    """
    details: list[ItemPenaltyDetail] = []
    for slot, item_id in enumerate(items[:6], start=1):
        if item_id <= 0:
            continue
        details.append(score_item_slot(slot, item_id, baseline.item_slot(slot), config))

    if not any(d.reason not in ("no_data", "boots") for d in details):
        return None, details

    total_penalty = sum(d.penalty for d in details)
    score = clamp_score(100 * (1 - total_penalty / config.penalty_scale))
    return score, details


def neutral_choice(
    category: str, player_choice: str | None, neutral_score: float
) -> BuildChoiceResult:
    """Result for a category with no comparable data."""
    return BuildChoiceResult(category=category, player_choice=player_choice, score=neutral_score)


def score_choice(
    category: str,
    player_choice: str | None,
    counter: CategoricalCounter,
    config: ChoiceConfig,
    source: BaselineSource,
    neutral_score: float = 50.0,
) -> BuildChoiceResult:
    """
    Compare one categorical choice against the best option in its bucket.

    When no option reaches ``min_games``, every option with games is
    ranked instead so sparse patches still produce a comparison.

    Args:
        category: Category name (keystone, spells, skills, starting)
        player_choice: The player's normalized choice key
        counter: Baseline counter for the category
        config: Ranking and penalty constants for the category
        source: Which aggregate level the counter came from
        neutral_score: Score when nothing can be compared

    Returns:
        Choice result with score, rank and confidence
    """
    if player_choice is None or counter.total_games == 0:
        return neutral_choice(category, player_choice, neutral_score)

    ranked = counter.ranked(config.min_games) or counter.ranked()
    stats = counter.get(player_choice)
    rank = _rank_of(player_choice, ranked)
    return _comparison(category, player_choice, player_choice, stats, rank, ranked, config, source)


def _comparison(
    category: str,
    player_choice: str,
    matched_choice: str | None,
    stats: WinStats | None,
    rank: int | None,
    ranked: list[RankedChoice],
    config: ChoiceConfig,
    source: BaselineSource,
) -> BuildChoiceResult:
    top = ranked[0]
    result = BuildChoiceResult(
        category=category,
        player_choice=player_choice,
        matched_choice=matched_choice,
        top_choice=top.key,
        top_winrate=_pct(top.winrate),
        total_options=len(ranked),
        rank=rank,
        source=source,
    )

    if stats is not None and stats.games > 0:
        result.games = stats.games
        result.player_winrate = _pct(stats.winrate)
        result.confidence = sample_confidence(stats.games)

    if rank is None or stats is None or stats.games == 0:
        result.penalty = config.unknown_penalty
    elif rank <= config.top_n:
        result.in_top_n = True
    else:
        result.penalty = _gap_penalty(top.winrate, stats.winrate, config)

    result.score = penalty_to_score(result.penalty, config.max_penalty)
    return result


def rank_cores(aggregate: ChampionPatchAggregate, min_games: int) -> list[RankedChoice]:
    """Core builds with at least ``min_games`` games, best Wilson lower bound first."""
    ranked = aggregate.core_counter().ranked(min_games)
    ranked.sort(key=lambda c: (-wilson_lower_bound(c.wins, c.games), -c.games, c.key))
    return ranked


def core_family_stats(aggregate: ChampionPatchAggregate, core_key: str) -> WinStats:
    """Pooled games/wins of every core sharing at least two items with ``core_key``."""
    pooled = WinStats()
    for other_key, sub in aggregate.core.items():
        if core_overlap(core_key, other_key) >= CORE_FAMILY_OVERLAP:
            pooled.games += sub.games
            pooled.wins += sub.wins
    return pooled


def score_core(
    core_key: str | None,
    aggregate: ChampionPatchAggregate,
    config: ChoiceConfig,
    neutral_score: float = 50.0,
) -> tuple[BuildChoiceResult, bool]:
    """
    Score the player's core build against the best cores of the patch.

    A core with too few games of its own is judged by its family (cores
    sharing two of three items) before falling back to ``unknown_penalty``.

    Returns:
        (result, whether the core family fallback was used)
    """
    if core_key is None or not aggregate.core:
        return neutral_choice("core", core_key, neutral_score), False

    ranked = rank_cores(aggregate, config.min_games)
    if not ranked:
        return neutral_choice("core", core_key, neutral_score), False

    own = aggregate.core_counter().get(core_key)
    if own is not None and own.games >= config.min_games:
        rank = _rank_of(core_key, ranked)
        result = _comparison("core", core_key, core_key, own, rank, ranked, config, BaselineSource.CORE)
        return result, False

    family = core_family_stats(aggregate, core_key)
    if family.games >= config.min_games:
        family_bound = wilson_lower_bound(family.wins, family.games)
        rank = 1 + sum(
            1 for c in ranked if wilson_lower_bound(c.wins, c.games) > family_bound
        )
        logger.debug(f"Core {core_key} scored by family ({family.games} pooled games)")
        result = _comparison(
            "core", core_key, None, family, rank, ranked, config, BaselineSource.CHAMPION
        )
        return result, True

    result = _comparison("core", core_key, None, own, None, ranked, config, BaselineSource.CORE)
    return result, True
