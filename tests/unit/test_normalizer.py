"""
Unit tests for model reply recovery and op validation.
"""

import pytest

from resumefit.contexts.targeting.normalizer import (
    parse_model_reply,
    parse_operations,
    recover_json,
    sanitize_backslashes,
)
from resumefit.contexts.targeting.operations import (
    ReplaceBullets,
    ReplaceSkillCsv,
    parse_operation,
    restore_latex_commands,
)

CLEAN = '{"ops":[{"op":"replace_bullets","section":"Acme Corp","bullets":["A","B"]}]}'


@pytest.mark.unit
class TestParseModelReply:
    def test_clean_json(self):
        reply = parse_model_reply(CLEAN)
        assert reply.strategy == "direct"
        assert reply.ops[0]["section"] == "Acme Corp"

    def test_fenced_json(self):
        reply = parse_model_reply(f"```json\n{CLEAN}\n```")
        assert reply.strategy == "fenced"
        assert reply.ops[0]["bullets"] == ["A", "B"]

    def test_unterminated_fence(self):
        reply = parse_model_reply(f"```json\n{CLEAN}\n")
        assert len(reply.ops) == 1

    def test_conversational_text_around_json(self):
        reply = parse_model_reply(f"Sure! Here are the edits:\n{CLEAN}\nLet me know if you need more.")
        assert len(reply.ops) == 1
        assert reply.ops[0]["op"] == "replace_bullets"

    def test_unescaped_latex_backslashes(self):
        raw = '{"ops":[{"op":"replace_bullets","section":"Acme Corp","bullets":["Cut costs 30\\% in R\\&D"]}]}'
        reply = parse_model_reply(raw)
        assert reply.ops[0]["bullets"] == ["Cut costs 30\\% in R\\&D"]

    def test_garbage(self):
        reply = parse_model_reply("I could not complete this request.")
        assert reply.ops == []
        assert reply.strategy == "none"

    @pytest.mark.parametrize("raw", ["", None, 42, "{", "```", '{"ops": "nope"}'])
    def test_never_raises(self, raw):
        assert parse_model_reply(raw).ops == []

    def test_keyed_value_with_lone_object(self):
        raw = 'ops follow "ops": {"op":"replace_skill_csv","label":"Databases","csv":"Postgres"} done'
        reply = parse_model_reply(raw)
        assert reply.ops == [{"op": "replace_skill_csv", "label": "Databases", "csv": "Postgres"}]

    def test_truncated_reply_keeps_complete_ops(self):
        raw = (
            '{"ops":[{"op":"replace_bullets","section":"Acme Corp","bullets":["A","B"]},'
            '{"op":"replace_bullets","section":"Globex","bullets":["unfinished'
        )
        reply = parse_model_reply(raw)
        assert reply.strategy == "shrink_tail"
        assert [op["section"] for op in reply.ops] == ["Acme Corp"]


@pytest.mark.unit
class TestRecoverJson:
    def test_other_key(self):
        found = recover_json('noise {"skills": ["Kafka"], "important": []} noise', "skills")
        assert found == {"skills": ["Kafka"], "important": []}

    def test_missing_key(self):
        assert recover_json('{"other": []}', "skills") is None


@pytest.mark.unit
class TestSanitizeBackslashes:
    def test_lone_backslash_doubled(self):
        assert sanitize_backslashes(r'"30\%"') == r'"30\\%"'

    def test_valid_escapes_kept(self):
        text = r'"line\nbreak \"quoted\" \\ é"'
        assert sanitize_backslashes(text) == text


@pytest.mark.unit
class TestParseOperation:
    def test_replace_bullets(self):
        op = parse_operation({"op": "replace_bullets", "section": " Acme Corp ", "bullets": ["A", 3]})
        assert op == ReplaceBullets(section="Acme Corp", bullets=["A", "3"])

    def test_non_text_bullets_keep_their_slot(self):
        op = parse_operation({"op": "replace_bullets", "section": "Acme Corp", "bullets": ["A", None, {"b": 1}, "D"]})
        assert op.bullets == ["A", None, None, "D"]

    def test_replace_skill_csv_list_payload(self):
        op = parse_operation({"op": "replace_skill_csv", "label": "Databases", "csv": ["Postgres", "Redis"]})
        assert op == ReplaceSkillCsv(label="Databases", csv="Postgres, Redis")

    @pytest.mark.parametrize(
        "record",
        [
            "replace_bullets",
            {"op": "replace_bullets", "bullets": ["A"]},
            {"op": "replace_bullets", "section": "Acme Corp", "bullets": "A"},
            {"op": "replace_skill_csv", "label": "", "csv": "Go"},
            {"op": "replace_skill_csv", "label": "Databases", "csv": {"a": 1}},
            {"op": "delete_everything"},
        ],
    )
    def test_malformed_rejected(self, record):
        assert parse_operation(record) is None

    def test_restore_swallowed_command(self):
        assert restore_latex_commands("\textbf{Go}") == "\\textbf{Go}"

    def test_parse_operations_filters_bad_entries(self):
        raw = (
            '{"ops":[{"op":"replace_bullets","section":"Acme Corp","bullets":["A"]},'
            '{"op":"unknown"},'
            '{"op":"replace_skill_csv","label":"Databases","csv":"Postgres"}]}'
        )
        ops = parse_operations(raw)
        assert ops == [
            ReplaceBullets(section="Acme Corp", bullets=["A"]),
            ReplaceSkillCsv(label="Databases", csv="Postgres"),
        ]
