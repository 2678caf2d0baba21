from __future__ import annotations

import json

from fixtures import StubConsole
from lllm.core import workspace
from lllm.quiz import cli as quiz_cli
from lllm.topics.store import TopicStore


def _seed_topic() -> None:
    store = TopicStore.from_layout(workspace.ensure_workspace())
    store.save_question_answer("golang", "What is a goroutine?", "A1")


def _question() -> str:
    return json.dumps(
        {
            "question": "Explain goroutines.",
            "difficulty": "hard",
            "expectedKeyPoints": ["a", "b", "c", "d"],
        }
    )


def test_quiz_without_topics_exits_cleanly(openai_stub):
    console = StubConsole([])

    code = quiz_cli.main([], console=console, client=openai_stub)

    assert code == 0
    assert "No topics found" in console.text


def test_invalid_choice_exits_2(openai_stub):
    _seed_topic()
    console = StubConsole(["5"])

    code = quiz_cli.main([], console=console, client=openai_stub)

    assert code == 2
    assert "Invalid choice" in console.text
    assert openai_stub.calls == []


def test_quiz_round_and_score(openai_stub):
    _seed_topic()
    openai_stub.queue_response(_question())
    openai_stub.queue_response('{"isCorrect": true, "feedback": "Good."}')
    console = StubConsole(["1", "answer", "no"])

    code = quiz_cli.main(["--seed", "7"], console=console, client=openai_stub)

    assert code == 0
    assert "Difficulty: HARD" in console.text
    assert "Score: 1/1 (100%)" in console.text


def test_generation_failure_exits_1(openai_stub, capsys):
    _seed_topic()
    openai_stub.queue_response("not json at all")
    console = StubConsole(["2"])

    code = quiz_cli.main([], console=console, client=openai_stub)

    assert code == 1
    assert "Failed to generate question" in capsys.readouterr().err
    log_file = workspace.ensure_workspace().path_for("logs") / "lllm.log"
    events = [
        json.loads(line)
        for line in log_file.read_text(encoding="utf-8").splitlines()
    ]
    failure = next(
        event
        for event in events
        if event["message"] == "Failed to parse question"
    )
    assert failure["extra"]["response"] == "not json at all"


def test_quiz_without_credential_exits_2(capsys):
    _seed_topic()

    code = quiz_cli.main([], console=StubConsole(["1"]))

    assert code == 2
    assert "lllm config set-api-key" in capsys.readouterr().err
