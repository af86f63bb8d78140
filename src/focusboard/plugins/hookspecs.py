"""Pluggy hook specifications for focusboard lifecycle events.

Hooks fire after the store has accepted a change (or, for
``post_move_failed``, after a batch was rolled back).
"""

from __future__ import annotations

import pluggy

hookspec = pluggy.HookspecMarker("focusboard")


class FocusboardHookSpec:
    """Hook specifications for the focusboard plugin system."""

    @hookspec
    def post_card_create(self, card_id: str, list_id: str, position: int, title: str) -> None:
        """Called after a card is created."""

    @hookspec
    def post_card_move(
        self,
        card_id: str,
        from_list_id: str,
        to_list_id: str,
        position: int,
        renumbered: list[str],
    ) -> None:
        """Called after a card move batch is persisted."""

    @hookspec
    def post_card_delete(self, card_id: str, list_id: str) -> None:
        """Called after a card is deleted and its siblings renumbered."""

    @hookspec
    def post_move_failed(self, card_id: str, error: str, restored: list[str]) -> None:
        """Called after a move batch fails and the index is rolled back."""

    @hookspec
    def post_list_create(self, list_id: str, zone_id: str, position: int, title: str) -> None:
        """Called after a list is created."""

    @hookspec
    def post_list_delete(self, list_id: str, zone_id: str, cards_removed: int) -> None:
        """Called after a list (and its cards) is deleted."""

    @hookspec
    def post_focus_toggle(self, list_id: str, zone_id: str, is_focused: bool) -> None:
        """Called after a list's focus flag changes."""
