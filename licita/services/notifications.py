import aiohttp
from licita.core.logging_config import logger
from licita.crud import notifications as notifications_crud
from licita.crud.proposals import list_supplier_ids
from licita.crud.users import get_public_entity_by_id, get_supplier_by_id, list_user_ids_by_role
from licita.db.database import Database
from licita.models.biddings import Bidding
from licita.models.proposals import Proposal


class NotificationService:
    """
    Fire-and-forget доставка уведомлений.

    Запись сохраняется в собственной сессии, чтобы сбой доставки не затрагивал
    транзакцию вызывающего кода; при настроенном вебхуке уведомление
    дополнительно отправляется POST-запросом. Любая ошибка только логируется.
    """

    def __init__(self, database: Database, webhook_url: str | None = None):
        self.database = database
        self.webhook_url = webhook_url

    async def notify(
        self,
        type: str,
        title: str,
        message: str,
        user_id: str | None = None,
        role: str | None = None,
        payload: dict | None = None,
    ) -> None:
        """Личное уведомление или рассылка роли: каждому активному пользователю роли своя запись."""
        target = user_id or f"role:{role}"
        try:
            async with self.database.session() as db:
                if user_id:
                    await notifications_crud.create_notification(
                        db, user_id=user_id, role=role, type=type, title=title, message=message, payload=payload
                    )
                    stored = 1
                else:
                    stored = await notifications_crud.create_notifications(
                        db,
                        await list_user_ids_by_role(db, role),
                        role=role,
                        type=type,
                        title=title,
                        message=message,
                        payload=payload,
                    )
                await db.commit()
            logger.info(f"Notification {type} stored for {target} ({stored} recipients)")
        except Exception as e:
            logger.error(f"Error storing notification {type} for {target}: {str(e)}")
            return

        if self.webhook_url:
            await self._post_webhook(
                {"type": type, "title": title, "message": message, "userId": user_id, "role": role, "payload": payload}
            )

    async def _post_webhook(self, body: dict) -> None:
        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    self.webhook_url, json=body, timeout=aiohttp.ClientTimeout(total=10)
                ) as response:
                    if response.status >= 300:
                        logger.error(f"Failed to deliver notification webhook: HTTP {response.status}, {await response.text()}")
                    else:
                        logger.debug(f"Notification webhook delivered: {body['type']}")
        except Exception as e:
            logger.error(f"Error delivering notification webhook: {str(e)}")

    async def notify_new_bidding(self, bidding: Bidding) -> None:
        await self.notify(
            "NEW_BIDDING",
            "Nova licitação publicada",
            f"{bidding.bidding_number}: {bidding.title}",
            role="SUPPLIER",
            payload={"biddingId": bidding.id, "biddingNumber": bidding.bidding_number},
        )

    async def notify_proposal_received(self, bidding: Bidding, proposal: Proposal) -> None:
        try:
            async with self.database.session() as db:
                entity = await get_public_entity_by_id(db, bidding.public_entity_id)
        except Exception as e:
            logger.error(f"Error resolving owner of bidding {bidding.id}: {str(e)}")
            return
        if not entity:
            return
        await self.notify(
            "PROPOSAL_RECEIVED",
            "Nova proposta recebida",
            f"Proposta recebida para a licitação {bidding.bidding_number}",
            user_id=entity.user_id,
            payload={"biddingId": bidding.id, "proposalId": proposal.id},
        )

    async def notify_proposal_status_change(self, proposal: Proposal, status: str) -> None:
        try:
            async with self.database.session() as db:
                supplier = await get_supplier_by_id(db, proposal.supplier_id)
        except Exception as e:
            logger.error(f"Error resolving supplier of proposal {proposal.id}: {str(e)}")
            return
        if not supplier:
            return
        await self.notify(
            "PROPOSAL_STATUS_CHANGED",
            "Status da proposta atualizado",
            f"Sua proposta agora está {status}",
            user_id=supplier.user_id,
            payload={"proposalId": proposal.id, "biddingId": proposal.bidding_id, "status": status},
        )

    async def notify_bidding_closing_soon(self, bidding: Bidding, hours_left: int) -> int:
        try:
            async with self.database.session() as db:
                user_ids = []
                for supplier_id in await list_supplier_ids(db, bidding.id):
                    supplier = await get_supplier_by_id(db, supplier_id)
                    if supplier:
                        user_ids.append(supplier.user_id)
        except Exception as e:
            logger.error(f"Error resolving participants of bidding {bidding.id}: {str(e)}")
            return 0

        for user_id in user_ids:
            await self.notify(
                "BIDDING_CLOSING_SOON",
                "Licitação encerrando",
                f"A licitação {bidding.bidding_number} encerra em {hours_left} horas",
                user_id=user_id,
                payload={"biddingId": bidding.id, "hoursLeft": hours_left},
            )
        return len(user_ids)

    async def notify_admins(self, type: str, title: str, message: str, payload: dict | None = None) -> None:
        await self.notify(type, title, message, role="ADMIN", payload=payload)
