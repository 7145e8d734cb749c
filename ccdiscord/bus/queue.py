"""Name-keyed actor registry with point-to-point and broadcast delivery."""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

from ccdiscord.bus.events import Envelope

if TYPE_CHECKING:
    from ccdiscord.actors.base import Actor


class MessageBus:
    """
    Routes envelopes to actors by name.

    The bus only forwards lifecycle calls; it does not own the actors
    themselves. Registration keeps insertion order, which is also the order
    used by ``start_all``/``stop_all`` and ``broadcast``.
    """

    def __init__(self):
        self._actors: dict[str, Actor] = {}

    def register(self, actor: Actor) -> None:
        """Register an actor. A second actor with the same name replaces the first."""
        if actor.name in self._actors:
            logger.warning(f"Actor '{actor.name}' already registered; replacing it")
        else:
            logger.debug(f"Registering actor: {actor.name}")
        self._actors[actor.name] = actor

    def unregister(self, name: str) -> None:
        if self._actors.pop(name, None) is not None:
            logger.debug(f"Unregistered actor: {name}")

    async def send(self, envelope: Envelope) -> Envelope | None:
        """Deliver to ``envelope.recipient``. Unknown recipients yield ``None``."""
        actor = self._actors.get(envelope.recipient)
        if actor is None:
            logger.info(f"No actor named '{envelope.recipient}' (from {envelope.sender}); dropping {envelope.type}")
            return None
        logger.debug(f"{envelope.sender} -> {envelope.recipient}: {envelope.type}")
        return await actor.handle_message(envelope)

    async def broadcast(self, envelope: Envelope) -> list[Envelope]:
        """Deliver a copy to every actor except the sender and collect the replies."""
        logger.debug(f"Broadcasting {envelope.type} from {envelope.sender}")
        responses: list[Envelope] = []
        for name, actor in list(self._actors.items()):
            if name == envelope.sender:
                continue
            response = await actor.handle_message(envelope.readdressed(name))
            if response is not None:
                responses.append(response)
        return responses

    async def start_all(self) -> None:
        """Start actors one by one in registration order. Failures propagate."""
        logger.info("Starting all actors...")
        for actor in list(self._actors.values()):
            await actor.start()

    async def stop_all(self) -> None:
        """Stop actors one by one in registration order. Failures propagate."""
        logger.info("Stopping all actors...")
        for actor in list(self._actors.values()):
            await actor.stop()

    def get(self, name: str) -> Actor | None:
        return self._actors.get(name)

    def has_actor(self, name: str) -> bool:
        return name in self._actors

    def actor_names(self) -> list[str]:
        return list(self._actors)
