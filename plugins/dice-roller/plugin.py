"""
Dice Roller Plugin

A stateless plugin for rolling dice in chat.

This plugin runs as a separate process and communicates entirely via NATS.

Commands:
    !roll <notation> [groups] [private] - Roll dice using standard notation

NATS Subjects:
    Subscribe:
        dicebot.command.dice.roll - Handle !roll commands
    Publish:
        dicebot.platform.{platform}.send.chat - Public reply (no reply subject)
        dicebot.platform.{platform}.send.pm - Private reply (no reply subject)
        dicebot.event.dice.rolled - Event emitted after each roll
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from nats.aio.client import Client as NATS

try:
    from .dice import (
        DiceRoller,
        DiceSpecification,
        ParseError,
        RollResult,
        format_roll,
        group,
        parse,
    )
except ImportError:
    from dice import (  # type: ignore[no-redef]
        DiceRoller,
        DiceSpecification,
        ParseError,
        RollResult,
        format_roll,
        group,
        parse,
    )

logger = logging.getLogger(__name__)


class ReplySink:
    """
    Delivers exactly one reply for a single !roll invocation.

    When the request carries a NATS reply subject the reply goes back on it,
    tagged with the delivery mode so the platform connector can honour it.
    Otherwise it is published straight to the platform's chat or PM subject.
    """

    def __init__(
        self,
        nats_client: NATS,
        msg,
        platform: str,
        channel: str,
        user: str,
        private: bool,
        log: Optional[logging.Logger] = None,
    ):
        self.nats = nats_client
        self.msg = msg
        self.platform = platform
        self.channel = channel
        self.user = user
        self.private = private
        self.logger = log or logger

    @property
    def subject(self) -> str:
        """Platform subject used when the request has no reply subject."""
        kind = "pm" if self.private else "chat"
        return f"dicebot.platform.{self.platform}.send.{kind}"

    async def send(self, content: str, success: bool = True) -> None:
        """Send the reply. Delivery errors are logged, never raised."""
        try:
            if self.msg is not None and self.msg.reply:
                payload = {
                    "success": success,
                    "private": self.private,
                    "channel": self.channel,
                    "user": self.user,
                }
                payload["message" if success else "error"] = content
                await self.msg.respond(json.dumps(payload).encode())
            elif self.private:
                await self.nats.publish(
                    self.subject,
                    json.dumps({"user": self.user, "message": content}).encode(),
                )
            else:
                await self.nats.publish(
                    self.subject,
                    json.dumps({"channel": self.channel, "message": content}).encode(),
                )
        except Exception as e:
            self.logger.error(f"Error sending reply: {e}")


class DiceRollerPlugin:
    """
    Dice rolling plugin for tabletop games in chat.

    This plugin communicates entirely via NATS messaging:
    - Subscribes to the !roll command subject
    - Replies through a ReplySink (request/reply or platform subjects)
    - Publishes events for analytics

    Commands:
        !roll <notation> - Roll dice using standard notation

    Examples:
        !roll 3d6   -> You rolled **3d6** (max is 18, min is 3, avg is 10.5): ...
        !roll d20+5 -> You rolled **d20+5** (max is 25, min is 6, avg is 15.5): ...
        !roll hello -> Invalid format

    Configuration:
        platform: Platform name used in send subjects (default: "cytube")
        emit_events: Whether to emit analytics events (default: true)
        force_groups: Always report duplicate groups, whatever the
            caller's groups flag says (default: true)

    Parsing and rolling run synchronously inside the NATS callback and
    the notation has no size limits. The platform connector is expected
    to cap command length (and with it the dice count) before
    publishing to SUBJECT_ROLL.
    """

    # Plugin metadata
    NAMESPACE = "dice-roller"
    VERSION = "2.0.0"
    DESCRIPTION = "Roll dice with grouped-duplicate statistics"

    # NATS subjects
    SUBJECT_ROLL = "dicebot.command.dice.roll"
    EVENT_ROLLED = "dicebot.event.dice.rolled"

    # Defaults
    DEFAULT_PLATFORM = "cytube"

    def __init__(self, nats_client: NATS, config: Optional[Dict[str, Any]] = None):
        """
        Initialize dice roller plugin.

        Args:
            nats_client: Connected NATS client for messaging
            config: Plugin configuration dict
        """
        self.nats = nats_client
        self.config = config or {}
        self.logger = logging.getLogger(f"{__name__}.{self.NAMESPACE}")
        self._initialized = False
        self._subscriptions: List[Any] = []

        # Load configuration with defaults
        self.platform = self.config.get("platform", self.DEFAULT_PLATFORM)
        self.emit_events = self.config.get("emit_events", True)
        self.force_groups = self.config.get("force_groups", True)

        self.roller = DiceRoller()

    async def initialize(self) -> None:
        """
        Initialize plugin and subscribe to NATS subjects.
        """
        self.logger.info(f"Initializing {self.NAMESPACE} plugin v{self.VERSION}")

        sub_roll = await self.nats.subscribe(self.SUBJECT_ROLL, cb=self._handle_roll)
        self._subscriptions.append(sub_roll)

        self._initialized = True
        self.logger.info(f"Plugin initialized. Subscribed to: {self.SUBJECT_ROLL}")

    async def shutdown(self) -> None:
        """
        Shutdown plugin and cleanup subscriptions.
        """
        self.logger.info(f"Shutting down {self.NAMESPACE} plugin")

        for sub in self._subscriptions:
            try:
                await sub.unsubscribe()
            except Exception as e:
                self.logger.warning(f"Error unsubscribing: {e}")

        self._subscriptions.clear()
        self._initialized = False
        self.logger.info("Plugin shutdown complete")

    def _ensure_initialized(self) -> None:
        """Raise error if plugin not initialized."""
        if not self._initialized:
            raise RuntimeError(
                f"{self.NAMESPACE} plugin not initialized. "
                "Call initialize() before using methods."
            )

    # =========================================================================
    # NATS Command Handlers
    # =========================================================================

    async def _handle_roll(self, msg) -> None:
        """
        Handle !roll command from NATS.

        Expected message format:
            {
                "channel": "string",
                "user": "string",
                "dice": "3d6+2",
                "groups": false,
                "private": false
            }

        "args" is accepted in place of "dice" for routers that forward the
        raw command arguments.

        Response format (request/reply):
            {
                "success": true,
                "message": "You rolled **3d6+2** ...",
                "private": false,
                "channel": "string",
                "user": "string"
            }
        """
        try:
            data = json.loads(msg.data.decode())
            if not isinstance(data, dict):
                raise ValueError(f"expected a JSON object, got {type(data).__name__}")
        except (ValueError, UnicodeDecodeError) as e:
            self.logger.error(f"Invalid message format: {e}")
            if msg.reply:
                await self._respond(msg, {"success": False, "error": "Invalid message format"})
            return

        channel = data.get("channel", "unknown")
        user = data.get("user", "unknown")
        dice = data.get("dice", data.get("args", ""))
        if not isinstance(dice, str):
            dice = ""
        grouped = bool(data.get("groups", False))
        private = bool(data.get("private", False))

        sink = ReplySink(
            self.nats, msg, self.platform, channel, user, private, log=self.logger
        )
        await self._process_roll(sink, dice, grouped)

    async def _respond(self, msg, data: Dict[str, Any]) -> None:
        """Send JSON response to NATS message."""
        try:
            await msg.respond(json.dumps(data).encode())
        except Exception as e:
            self.logger.error(f"Error sending response: {e}")

    # =========================================================================
    # Core Logic
    # =========================================================================

    async def _process_roll(self, sink: ReplySink, dice: str, grouped: bool) -> None:
        """
        Process a dice roll request and deliver one reply.

        Args:
            sink: Where the reply goes (also carries channel, user, privacy)
            dice: Dice notation string
            grouped: Caller's groups flag (overridden when force_groups is set)
        """
        outcome = parse(dice)

        if isinstance(outcome, ParseError):
            self.logger.debug(f"Roll error for '{dice}': {outcome.message}")
            await sink.send(outcome.message, success=False)
            return

        show_groups = True if self.force_groups else grouped
        if show_groups != grouped:
            self.logger.debug(f"Ignoring groups={grouped} for '{dice}'")

        spec = outcome.spec
        result = self.roller.roll(spec)
        text = format_roll(spec, result, group(result.outcomes), show_groups)

        await sink.send(text)

        if self.emit_events:
            await self._emit_roll_event(sink.channel, sink.user, spec, result)

    # =========================================================================
    # Event Emission
    # =========================================================================

    async def _emit_roll_event(
        self, channel: str, user: str, spec: DiceSpecification, result: RollResult
    ) -> None:
        """
        Emit dice.rolled event for analytics.

        Args:
            channel: Channel where roll occurred
            user: User who rolled
            spec: Parsed specification
            result: Roll result
        """
        event_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "channel": channel,
            "user": user,
            "query": spec.query,
            "dice_amount": spec.amount,
            "dice_sides": spec.sides,
            "modifier": spec.modifier,
            "outcomes": result.outcomes,
            "total": result.total,
        }

        try:
            await self.nats.publish(self.EVENT_ROLLED, json.dumps(event_data).encode())
        except Exception as e:
            self.logger.debug(f"Could not publish roll event: {e}")

    # =========================================================================
    # Direct API (for testing or direct usage)
    # =========================================================================

    def roll(self, dice: str, grouped: bool = False) -> str:
        """
        Roll dice directly (synchronous).

        Args:
            dice: Dice notation string (e.g., "2d6+5")
            grouped: Caller's groups flag (overridden when force_groups is set)

        Returns:
            The text a !roll command would reply with

        Raises:
            RuntimeError: If the plugin has not been initialized
        """
        self._ensure_initialized()

        outcome = parse(dice)
        if isinstance(outcome, ParseError):
            return outcome.message

        result = self.roller.roll(outcome.spec)
        show_groups = True if self.force_groups else grouped
        return format_roll(outcome.spec, result, group(result.outcomes), show_groups)
