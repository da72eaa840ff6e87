import dataclasses
import unittest

from ludo_inca.actions import (
    CreateRoom,
    Disconnect,
    JoinRoom,
    MoveToken,
    QueryRoomState,
    RollDice,
    SetReady,
    parse_action,
)
from ludo_inca.exceptions import InvalidActionError


class TestParseAction(unittest.TestCase):
    def test_room_id_as_bare_string_or_object(self):
        self.assertEqual(parse_action("rollDice", "r1", "sid"), RollDice("sid", "r1"))
        self.assertEqual(parse_action("rollDice", {"roomId": "r1"}, "sid"), RollDice("sid", "r1"))
        self.assertEqual(
            parse_action("getRoomState", " r1 ", "sid"), QueryRoomState("sid", "r1")
        )
        self.assertEqual(parse_action("createRoom", {"roomId": "r1"}, "sid"), CreateRoom("sid", "r1"))

    def test_missing_room_id(self):
        for payload in (None, "", "   ", {}, {"roomId": 5}, ["r1"]):
            with self.assertRaises(InvalidActionError):
                parse_action("endTurn", payload, "sid")

    def test_join_room(self):
        action = parse_action("joinRoom", {"roomId": "r1", "name": "  Ana "}, "sid")
        self.assertEqual(action, JoinRoom("sid", "r1", "Ana"))

    def test_join_room_bad_name(self):
        for name in (None, "", "  ", "x" * 33, 7):
            with self.assertRaises(InvalidActionError):
                parse_action("joinRoom", {"roomId": "r1", "name": name}, "sid")

    def test_player_ready(self):
        self.assertEqual(parse_action("playerReady", True, "sid"), SetReady("sid", True))
        self.assertEqual(parse_action("playerReady", {"ready": False}, "sid"), SetReady("sid", False))
        with self.assertRaises(InvalidActionError):
            parse_action("playerReady", "yes", "sid")

    def test_move_token(self):
        payload = {"roomId": "r1", "playerId": "sid", "tokenId": "t1", "steps": 6, "isInitialMove": True}
        action = parse_action("moveToken", payload, "sid")
        self.assertEqual(action, MoveToken("sid", "r1", "sid", "t1", 6, True))

    def test_move_token_defaults_initial_move(self):
        payload = {"roomId": "r1", "playerId": "sid", "tokenId": "t1", "steps": 3}
        self.assertFalse(parse_action("moveToken", payload, "sid").is_initial_move)

    def test_move_token_rejects_bad_steps(self):
        base = {"roomId": "r1", "playerId": "sid", "tokenId": "t1"}
        for steps in (0, 7, -1, "3", 2.5, True, None):
            with self.assertRaises(InvalidActionError):
                parse_action("moveToken", dict(base, steps=steps), "sid")

    def test_move_token_rejects_missing_fields(self):
        with self.assertRaises(InvalidActionError):
            parse_action("moveToken", {"roomId": "r1", "steps": 3}, "sid")
        with self.assertRaises(InvalidActionError):
            parse_action(
                "moveToken",
                {"roomId": "r1", "playerId": "sid", "tokenId": "t1", "steps": 3, "isInitialMove": "no"},
                "sid",
            )

    def test_disconnect(self):
        self.assertEqual(parse_action("disconnect", None, "sid"), Disconnect("sid"))

    def test_unknown_event(self):
        with self.assertRaises(InvalidActionError):
            parse_action("cheat", {}, "sid")

    def test_connection_id_required(self):
        with self.assertRaises(InvalidActionError):
            parse_action("rollDice", "r1", "")

    def test_invalid_action_is_value_error(self):
        with self.assertRaises(ValueError):
            parse_action("rollDice", None, "sid")

    def test_actions_are_immutable(self):
        action = RollDice("sid", "r1")
        with self.assertRaises(dataclasses.FrozenInstanceError):
            action.room_id = "r2"


if __name__ == "__main__":
    unittest.main()
