"""Witch garden quest handlers.

The witch asks the player to grow three different crops in her garden, then
to bring her pickled onions. Harvests are fed in by the farming system via
record_crop_harvested(); this module owns the chain's metadata shape.
"""
import logging
from typing import List

from twilight.quest import ChainTracker, HandlerRegistry

logger = logging.getLogger(__name__)

QUEST_ID = "witch_garden"
REQUIRED_UNIQUE_CROPS = 3

STAGE_ACTIVE = 1
STAGE_GARDEN_COMPLETE = 2
STAGE_PICKLED_ONIONS = 3
STAGE_COMPLETED = 4

DEFAULT_METADATA = {
    "garden_crops_grown": [],
    "pickled_onions_delivered": False,
}


def get_crops_grown(tracker: ChainTracker) -> List[str]:
    return list(tracker.get_metadata(QUEST_ID, "garden_crops_grown", []) or [])


def record_crop_harvested(tracker: ChainTracker, crop_id: str) -> bool:
    """Record a crop harvested from the witch's garden.

    Returns:
        True if the crop was new for the quest
    """
    if not tracker.is_chain_active(QUEST_ID):
        return False
    if tracker.get_stage_number(QUEST_ID) >= STAGE_GARDEN_COMPLETE:
        return False

    crops = get_crops_grown(tracker)
    if crop_id in crops:
        logger.debug(f"Crop '{crop_id}' already recorded for {QUEST_ID}")
        return False

    crops.append(crop_id)
    tracker.set_metadata(QUEST_ID, "garden_crops_grown", crops)
    logger.info(f"{QUEST_ID}: crop '{crop_id}' recorded ({len(crops)}/{REQUIRED_UNIQUE_CROPS})")

    if len(crops) >= REQUIRED_UNIQUE_CROPS:
        tracker.advance_to_stage(QUEST_ID, "garden_complete")
    return True


def _on_active(tracker: ChainTracker, chain_id: str) -> None:
    # Fill keys the starting dialogue did not provide
    for key, value in DEFAULT_METADATA.items():
        if tracker.get_metadata(chain_id, key) is None:
            tracker.set_metadata(chain_id, key, list(value) if isinstance(value, list) else value)


def register(handlers: HandlerRegistry) -> None:
    handlers.register(QUEST_ID, "active", _on_active)
