"""Live stream create, edit, delete and filter operations."""

from datetime import datetime, timedelta

from asyncpg.exceptions import UniqueViolationError
from loguru import logger

from creator_live.app_config import get_app_environ_config
from creator_live.domain.utils.idgen import new_live_channel
from creator_live.domain.utils.timeutil import as_utc, local_to_utc
from creator_live.repositories.records import LiveRecord
from creator_live.schemas import LiveStatus, LiveType
from creator_live.services.admin_settings import AdminSettings
from creator_live.services.integrations.rtc_credentials import (
    RtcCredential,
    RtcRole,
    new_participant_id,
)
from creator_live.shared.storage.postgres import AsyncPGClient
from creator_live.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

from ._base import BaseService
from ._goals import GOAL_PAIR_REQUIRED, GoalLedger, has_goal_coins, has_goal_name
from ._tip_menus import TipMenuStore
from .filters import DEFAULT_FILTER, LIVE_FILTERS, sanitize_filter
from .live_models import (
    LiveCreateView,
    LiveEditDetails,
    LiveEditView,
    LiveFilters,
    LiveUpsertParams,
    LiveUpsertResult,
)
from .live_state_machine import LiveStateMachine

RESCHEDULE_MIN_NOTICE = timedelta(hours=12)

NAME_MIN_LENGTH = 3
NAME_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 500


def live_token_ttl(duration_minutes: int) -> int:
    """Join token lifetime for a live: (duration + 60) * 1440 seconds."""
    return (max(duration_minutes, 0) + 60) * 1440


class StreamOperations(BaseService):
    """Create/edit, delete and filter operations on live streams."""

    def _validation_failed(self, errors: dict[str, str]) -> AppError:
        return AppError(
            errcode=AppErrorCode.E_INVALID_PARAMS,
            errmesg="Validation failed",
            status_code=HttpStatusCode.UNPROCESSABLE_ENTITY,
            details=errors,
        )

    def _validate_payload(self, params: LiveUpsertParams, settings: AdminSettings) -> None:
        errors: dict[str, str] = {}

        name = params.name.strip()
        if len(name) < NAME_MIN_LENGTH:
            errors["name"] = f"Title must be at least {NAME_MIN_LENGTH} characters long"
        elif len(name) > NAME_MAX_LENGTH:
            errors["name"] = f"Title must not exceed {NAME_MAX_LENGTH} characters"

        if len(params.description) > DESCRIPTION_MAX_LENGTH:
            errors["description"] = f"Description must not exceed {DESCRIPTION_MAX_LENGTH} characters"

        if params.price < 0:
            errors["price"] = "Price must be a valid positive number"
        elif params.price < settings.min_live_price:
            errors["price"] = f"Price must be at least {settings.min_live_price}"

        if params.duration <= 0:
            errors["duration"] = "Duration must be a valid positive number"
        elif params.duration > settings.max_live_duration:
            errors["duration"] = f"Duration must not exceed {settings.max_live_duration} minutes"

        if has_goal_name(params.goal_name) != has_goal_coins(params.goal_coins):
            errors["goal"] = GOAL_PAIR_REQUIRED

        if params.activity is not None or params.coins is not None:
            errors.update(TipMenuStore.validate(params.activity or [], params.coins or [], settings))

        if errors:
            raise self._validation_failed(errors)

    def _scheduled_at(self, params: LiveUpsertParams, now: datetime) -> datetime:
        """UTC start time from the local date, time and timezone; ``now`` for livenow."""
        if params.type is not LiveType.SCHEDULED:
            return now

        if not params.timezone:
            raise AppError(
                errcode=AppErrorCode.E_INVALID_PARAMS,
                errmesg="Timezone is required for scheduled live streams",
                status_code=HttpStatusCode.UNPROCESSABLE_ENTITY,
            )
        if not params.scheduled_date or not params.scheduled_time:
            raise AppError(
                errcode=AppErrorCode.E_INVALID_PARAMS,
                errmesg="scheduled_date and scheduled_time are required for scheduled live streams",
                status_code=HttpStatusCode.UNPROCESSABLE_ENTITY,
            )
        try:
            scheduled_at = local_to_utc(params.scheduled_date, params.scheduled_time, params.timezone)
        except ValueError as exc:
            raise AppError(
                errcode=AppErrorCode.E_INVALID_PARAMS,
                errmesg=str(exc),
                status_code=HttpStatusCode.UNPROCESSABLE_ENTITY,
            ) from exc

        if scheduled_at <= now:
            raise AppError(
                errcode=AppErrorCode.E_INVALID_PARAMS,
                errmesg="Scheduled Time Should Be Greater Than Current Time",
                status_code=HttpStatusCode.UNPROCESSABLE_ENTITY,
            )
        return scheduled_at

    def _decode_goal_ids(self, params: LiveUpsertParams) -> tuple[int | None, list[int]]:
        goal_id = None
        if params.goal_id and params.goal_id.strip():
            goal_id = self._decode_id(params.goal_id.strip(), "Invalid goal id format")

        delete_ids = []
        for token in params.delete_goal_ids:
            decoded = self.codec.decrypt(token.strip())
            if decoded is None:
                logger.info("ignoring undecodable goal id in delgoalid: {!r}", token)
                continue
            delete_ids.append(decoded)
        return goal_id, delete_ids

    async def _create_live(
        self, conn: AsyncPGClient, user_id: int, params: LiveUpsertParams, scheduled_at: datetime
    ) -> tuple[int, str]:
        if await self.storage.lives.has_scheduled(conn, user_id):
            raise AppError(
                errcode=AppErrorCode.E_LIVE_EXISTS,
                errmesg="Live already created",
                status_code=HttpStatusCode.BAD_REQUEST,
            )

        channel = new_live_channel(user_id, get_app_environ_config().LIVE_CHANNEL_SUFFIX_LENGTH)
        live_id = await self.storage.lives.insert(
            conn,
            user_id=user_id,
            channel=channel,
            name=params.name.strip(),
            description=params.description.strip(),
            price=params.price,
            availability=params.availability,
            live_type=params.type,
            duration=params.duration,
            date_time=scheduled_at,
        )
        logger.info("live {} created for user {} on channel {}", live_id, user_id, channel)
        return live_id, channel

    async def _edit_live(
        self,
        conn: AsyncPGClient,
        user_id: int,
        live_id: int,
        params: LiveUpsertParams,
        scheduled_at: datetime,
        settings: AdminSettings,
        now: datetime,
    ) -> tuple[LiveRecord, datetime]:
        live = await self.storage.lives.get(conn, live_id, for_update=True)
        if live is None or live.user_id != user_id:
            raise AppError(
                errcode=AppErrorCode.E_LIVE_NOT_FOUND,
                errmesg="Live not found",
                status_code=HttpStatusCode.NOT_FOUND,
            )
        if not LiveStateMachine.is_mutable(live.status):
            raise AppError(
                errcode=AppErrorCode.E_INVALID_STATE,
                errmesg="Live stream is not editable",
                status_code=HttpStatusCode.BAD_REQUEST,
            )
        if live.type is not LiveType.SCHEDULED and params.type is LiveType.SCHEDULED:
            raise AppError(
                errcode=AppErrorCode.E_INVALID_STATE,
                errmesg="Live type cannot be modified",
                status_code=HttpStatusCode.BAD_REQUEST,
            )

        stored_at = as_utc(live.date_time)
        # A livenow edit never moves the start time
        new_at = stored_at if params.type is LiveType.IMMEDIATE else scheduled_at

        if new_at != stored_at:
            if live.number_of_reschedules >= settings.max_reschedules:
                raise AppError(
                    errcode=AppErrorCode.E_RESCHEDULE_LIMIT,
                    errmesg="Max number of reschedules reached. Please delete and create new.",
                    status_code=HttpStatusCode.BAD_REQUEST,
                )
            if new_at < now + RESCHEDULE_MIN_NOTICE:
                exempt_group = get_app_environ_config().LIVE_RESCHEDULE_EXEMPT_GROUP
                if not await self.groups.is_member(conn, exempt_group, user_id):
                    raise AppError(
                        errcode=AppErrorCode.E_RESCHEDULE_TOO_SOON,
                        errmesg="New Livetime should be greater than 12hrs from the Current time",
                        status_code=HttpStatusCode.BAD_REQUEST,
                    )
            await self.storage.lives.increment_reschedules(conn, live_id)
            logger.info(
                "live {} rescheduled {} -> {} ({} of {})",
                live_id,
                stored_at,
                new_at,
                live.number_of_reschedules + 1,
                settings.max_reschedules,
            )

        await self.storage.lives.update_details(
            conn,
            live_id,
            name=params.name.strip(),
            description=params.description.strip(),
            price=params.price,
            availability=params.availability,
            live_type=params.type,
            duration=params.duration,
            date_time=new_at,
        )
        return live, new_at

    async def _skip_notify(
        self, conn: AsyncPGClient, user_id: int, date_time: datetime, settings: AdminSettings, now: datetime
    ) -> bool:
        if date_time < now + timedelta(minutes=settings.reschedule_buffer_minutes):
            return True
        restricted = await self.storage.creators.restricted_notification_creators(conn)
        return user_id in restricted

    def _immediate_credential(
        self, channel: str, duration: int, settings: AdminSettings, now: datetime
    ) -> RtcCredential | None:
        try:
            return self.issuer.issue(
                app_id=settings.rtc_app_id,
                app_secret=settings.rtc_app_secret,
                channel=channel,
                participant_id=new_participant_id(),
                role=RtcRole.PUBLISHER,
                ttl_seconds=live_token_ttl(duration),
                now=now,
            )
        except AppError as exc:
            # The live is already committed; the client can fetch a token from the join endpoint
            logger.warning("livenow credential not issued for channel {}: {}", channel, exc.errmesg)
            return None

    async def upsert_live(self, user_id: int, params: LiveUpsertParams) -> LiveUpsertResult:
        """
        Create a live, or edit the one named by ``params.live_id``.

        The live row, its tipping menu, its goal and its pending reminders are
        written in one transaction.
        """
        user = await self._verified_user(user_id)
        settings = await self._get_settings()
        now = self.clock()

        self._validate_payload(params, settings)
        scheduled_at = self._scheduled_at(params, now)
        goal_id, delete_goal_ids = self._decode_goal_ids(params)
        edit_id = self._decode_id(params.live_id, "Invalid encrypted live_id") if params.live_id else None

        ledger = GoalLedger(self.storage)
        tip_menus = TipMenuStore(self.storage)
        try:
            async with self.storage.transaction() as conn:
                if edit_id is None:
                    live_id, channel = await self._create_live(conn, user_id, params, scheduled_at)
                    date_time = scheduled_at
                else:
                    live, date_time = await self._edit_live(
                        conn, user_id, edit_id, params, scheduled_at, settings, now
                    )
                    live_id, channel = live.id, live.channel

                if params.activity is not None or params.coins is not None:
                    await tip_menus.replace_all(conn, live_id, params.activity or [], params.coins or [])

                await ledger.deactivate(conn, live_id, delete_goal_ids)
                await ledger.apply(conn, live_id, params.goal_name, params.goal_coins, goal_id)

                skip_notify = await self._skip_notify(conn, user_id, date_time, settings, now)
                await self.scheduler.schedule(
                    conn, live_id, user_id, skip_notify, date_time=date_time, now=now
                )
        except UniqueViolationError as exc:
            # Lost a race with a concurrent create for the same owner
            logger.warning("duplicate scheduled live for user {}: {}", user_id, exc)
            raise AppError(
                errcode=AppErrorCode.E_LIVE_EXISTS,
                errmesg="Live already created",
                status_code=HttpStatusCode.BAD_REQUEST,
            ) from exc

        await self._sync_goal_mirror(live_id)

        credential = None
        if params.type is LiveType.IMMEDIATE:
            credential = self._immediate_credential(channel, params.duration, settings, now)

        return LiveUpsertResult(
            live_id=self.codec.encrypt(live_id),
            url=self._live_url(live_id, params.type, user.username),
            credential=credential,
        )

    async def get_create_view(self, user_id: int) -> LiveCreateView:
        """The caller's latest live and its active tipping menu."""
        async with self.storage.session() as conn:
            await self._require_verified_user(conn, user_id)
            latest = await self.storage.lives.get_latest_for_user(conn, user_id)
            if latest is None:
                return LiveCreateView()
            menus = await self.storage.tip_menus.list_active(conn, latest.id)

        return LiveCreateView(live_id=self.codec.encrypt(latest.id), tipping_menus=self._tip_items(menus))

    async def get_edit_view(self, user_id: int, live_token: str) -> LiveEditView:
        async with self.storage.session() as conn:
            await self._require_verified_user(conn, user_id)
            live_id = self._decode_id(live_token, "Invalid live ID format")

            live = await self.storage.lives.get(conn, live_id)
            if live is None or live.user_id != user_id:
                raise AppError(
                    errcode=AppErrorCode.E_LIVE_NOT_FOUND,
                    errmesg="Live stream not found",
                    status_code=HttpStatusCode.NOT_FOUND,
                )
            if not LiveStateMachine.is_mutable(live.status):
                raise AppError(
                    errcode=AppErrorCode.E_LIVE_NOT_FOUND,
                    errmesg="Live stream is not editable",
                    status_code=HttpStatusCode.NOT_FOUND,
                )

            menus = await self.storage.tip_menus.list_active(conn, live_id)
            goal = await self.storage.goals.get_current(conn, live_id)

        settings = await self._get_settings()
        date_time = as_utc(live.date_time)
        return LiveEditView(
            live=LiveEditDetails(
                id=self.codec.encrypt(live.id),
                name=live.name,
                description=live.description,
                price=live.price,
                availability=live.availability,
                type=live.type,
                duration=live.duration,
                date=date_time.strftime("%Y-%m-%d"),
                time=date_time.strftime("%H:%M:%S"),
                date_time=date_time,
                number_of_reschedules=live.number_of_reschedules,
                remaining_reschedules=max(settings.max_reschedules - live.number_of_reschedules, 0),
            ),
            tipping_menus=self._tip_items(menus),
            goal=self._goal_item(goal) if goal is not None else None,
        )

    async def delete_live(self, user_id: int, live_token: str | None) -> str:
        """Soft-delete a scheduled live and drop its pending reminders. Returns the opaque id."""
        if not live_token:
            raise AppError(
                errcode=AppErrorCode.E_INVALID_REQUEST,
                errmesg="Live ID is required",
                status_code=HttpStatusCode.BAD_REQUEST,
            )

        async with self.storage.session() as conn:
            await self._get_user(conn, user_id)
        live_id = self._decode_id(live_token, "Invalid live ID format")

        async with self.storage.transaction() as conn:
            live = await self.storage.lives.get(conn, live_id, for_update=True)
            if live is None or live.user_id != user_id:
                raise AppError(
                    errcode=AppErrorCode.E_LIVE_NOT_FOUND,
                    errmesg="Live stream not found or access denied",
                    status_code=HttpStatusCode.NOT_FOUND,
                )
            if not LiveStateMachine.can_transition(live.status, LiveStatus.DELETED):
                logger.info("live {} delete rejected in status {}", live_id, live.status)
                raise AppError(
                    errcode=AppErrorCode.E_INVALID_STATE,
                    errmesg=LiveStateMachine.delete_rejection(live.status),
                    status_code=HttpStatusCode.BAD_REQUEST,
                    details={"currentStatus": int(live.status), "liveId": live_token},
                )

            await self.storage.lives.set_status(conn, live_id, LiveStatus.DELETED, user_id)
            await self.scheduler.cleanup(conn, live_id)

        logger.info("live {} deleted by user {}", live_id, user_id)
        return live_token

    def _decode_filter_target(self, live_token: str | None) -> int:
        if not live_token:
            raise AppError(
                errcode=AppErrorCode.E_INVALID_REQUEST,
                errmesg="Missing live id parameter",
                status_code=HttpStatusCode.BAD_REQUEST,
            )
        return self._decode_id(live_token, "Invalid live id format")

    async def get_filters(self, live_token: str | None) -> LiveFilters:
        live_id = self._decode_filter_target(live_token)
        async with self.storage.session() as conn:
            live = await self.storage.lives.get(conn, live_id)
        if live is None:
            raise AppError(
                errcode=AppErrorCode.E_LIVE_NOT_FOUND,
                errmesg="Live stream not found",
                status_code=HttpStatusCode.NOT_FOUND,
            )
        return LiveFilters(filters=dict(LIVE_FILTERS), current_filter=live.filter_applied or DEFAULT_FILTER)

    async def apply_filter(self, user_id: int, live_token: str | None, filter_key) -> str:
        """Store the filter on the caller's live; unknown keys are stored as ``none``."""
        live_id = self._decode_filter_target(live_token)
        key = sanitize_filter(filter_key)

        async with self.storage.transaction() as conn:
            live = await self.storage.lives.get(conn, live_id, for_update=True)
            if live is None:
                raise AppError(
                    errcode=AppErrorCode.E_LIVE_NOT_FOUND,
                    errmesg="Live stream not found",
                    status_code=HttpStatusCode.NOT_FOUND,
                )
            if live.user_id != user_id:
                raise AppError(
                    errcode=AppErrorCode.E_FORBIDDEN,
                    errmesg="Not authorized to apply filter to this live",
                    status_code=HttpStatusCode.FORBIDDEN,
                )
            await self.storage.lives.set_filter(conn, live_id, key)

        logger.info("live {} filter set to {}", live_id, key)
        return key
