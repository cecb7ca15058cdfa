import unittest

from coach.models.agent_events import (
    AgentResponseCorrectionEvent,
    AgentResponseEvent,
    TentativeAgentResponseEvent,
    UnknownAgentEvent,
    UserTranscriptEvent,
    parse_agent_event,
)


class TestParseAgentEvent(unittest.TestCase):

    def test_user_transcript(self):
        event = parse_agent_event(
            {
                "type": "user_transcript",
                "user_transcription_event": {"user_transcript": "I want juice"},
            }
        )
        self.assertIsInstance(event, UserTranscriptEvent)
        self.assertEqual(event.text, "I want juice")

    def test_tentative_agent_response(self):
        event = parse_agent_event(
            {
                "type": "internal_tentative_agent_response",
                "tentative_agent_response_internal_event": {
                    "tentative_agent_response": "That sounds"
                },
            }
        )
        self.assertIsInstance(event, TentativeAgentResponseEvent)
        self.assertEqual(event.text, "That sounds")

    def test_agent_response(self):
        event = parse_agent_event(
            {
                "type": "agent_response",
                "agent_response_event": {"agent_response": "Hi there!"},
            }
        )
        self.assertIsInstance(event, AgentResponseEvent)
        self.assertEqual(event.text, "Hi there!")

    def test_agent_response_correction(self):
        event = parse_agent_event(
            {
                "type": "agent_response_correction",
                "agent_response_correction_event": {
                    "original_agent_response": "Hi there!",
                    "corrected_agent_response": "Hi!!",
                },
            }
        )
        self.assertIsInstance(event, AgentResponseCorrectionEvent)
        self.assertEqual(event.text, "Hi!!")
        self.assertEqual(event.original_text, "Hi there!")

    def test_missing_payload_gives_empty_text(self):
        event = parse_agent_event({"type": "agent_response"})
        self.assertIsInstance(event, AgentResponseEvent)
        self.assertEqual(event.text, "")

    def test_non_object_payload_gives_empty_text(self):
        event = parse_agent_event(
            {"type": "agent_response", "agent_response_event": "oops"}
        )
        self.assertIsInstance(event, AgentResponseEvent)
        self.assertEqual(event.text, "")

        event = parse_agent_event(
            {"type": "agent_response_correction", "agent_response_correction_event": [1]}
        )
        self.assertIsInstance(event, AgentResponseCorrectionEvent)
        self.assertEqual(event.text, "")
        self.assertEqual(event.original_text, "")

    def test_unknown_event_type(self):
        data = {"type": "audio", "audio_event": {"audio_base_64": "AAAA"}}
        event = parse_agent_event(data)
        self.assertIsInstance(event, UnknownAgentEvent)
        self.assertEqual(event.type, "audio")
        self.assertEqual(event.payload, data)

    def test_event_without_type(self):
        event = parse_agent_event({"foo": "bar"})
        self.assertIsInstance(event, UnknownAgentEvent)
        self.assertEqual(event.type, "unknown")


if __name__ == "__main__":
    unittest.main()
