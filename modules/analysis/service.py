from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import List
import uuid
import logging

from core.exceptions import GatewayError, PersistenceError
from modules.inventory.models import InventoryItem
from modules.inventory.service import InventoryService
from utils.ai_gateway import ExtractionGateway

logger = logging.getLogger(__name__)

class AnalysisService:
    """
    Turns a batch of uploaded image URLs into inventory items.

    Images are processed one at a time in input order. The batch is
    all-or-nothing: every extraction and insert happens inside one
    transaction, and any gateway or persistence failure rolls the whole
    batch back before the error propagates.
    """

    def __init__(self, db: Session, gateway: ExtractionGateway):
        self.db = db
        self.gateway = gateway
        self.inventory_service = InventoryService(db)

    def analyze(self, image_urls: List[str], user_id: uuid.UUID) -> List[InventoryItem]:
        """Extract, validate and persist one item per image for the caller"""
        self.gateway.ensure_configured()
        logger.info(f"Analyzing {len(image_urls)} image(s) for user {user_id}")

        items: List[InventoryItem] = []
        try:
            for image_url in image_urls:
                details = self.gateway.extract(image_url)

                try:
                    item = self.inventory_service.stage_item(
                        user_id,
                        name=details.name,
                        description=details.description,
                        category=details.category,
                        estimated_value=details.estimated_value,
                        condition=details.condition,
                        brand=details.brand,
                        model=details.model,
                        color=details.color,
                        image_url=image_url
                    )
                except SQLAlchemyError as e:
                    logger.error(f"Insert error for {image_url}: {e}")
                    raise PersistenceError("Failed to save analyzed item")

                items.append(item)

            try:
                self.db.commit()
            except SQLAlchemyError as e:
                logger.error(f"Commit failed for analyzed batch: {e}")
                raise PersistenceError("Failed to save analyzed items")

        except (GatewayError, PersistenceError):
            self.db.rollback()
            logger.warning(f"Analysis aborted; {len(items)} staged item(s) discarded")
            raise

        for item in items:
            self.db.refresh(item)

        logger.info(f"Saved {len(items)} analyzed item(s) for user {user_id}")
        return items
