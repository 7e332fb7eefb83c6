from __future__ import annotations

from proofing_api.services.tool_session import SessionState, ToolSession, run_tool_session

SEARCH_TOOL = [{"type": "web_search_20250305", "name": "web_search"}]


def test_single_turn_end_turn_is_done(scripted_client, make_text_response) -> None:
    client = scripted_client(make_text_response('{"factCheck": []}'))

    session = run_tool_session(client, "system", "本文", tools=SEARCH_TOOL, max_iterations=10)

    assert session.state is SessionState.DONE
    assert session.text == '{"factCheck": []}'
    assert len(client.calls) == 1
    assert client.calls[0]["messages"] == [{"role": "user", "content": "原稿:\n本文"}]
    assert client.calls[0]["tools"] == SEARCH_TOOL


def test_server_tool_use_is_acknowledged_and_resubmitted(scripted_client, make_text_response) -> None:
    tool_turn = {
        "stop_reason": "tool_use",
        "content": [
            {"type": "text", "text": "調べます。"},
            {"type": "server_tool_use", "id": "srvtoolu_1", "name": "web_search", "input": {"query": "x"}},
        ],
    }
    client = scripted_client(tool_turn, make_text_response("完了"))

    session = run_tool_session(client, "system", "本文", max_iterations=10)

    assert session.state is SessionState.DONE
    assert session.text == "調べます。完了"
    assert len(client.calls) == 2
    second = client.calls[1]["messages"]
    assert [m["role"] for m in second] == ["user", "assistant", "user"]
    assert second[1]["content"] == tool_turn["content"]
    assert second[2]["content"] == [{"type": "server_tool_result", "tool_use_id": "srvtoolu_1"}]


def test_client_tool_use_continues_without_acknowledgement(scripted_client, make_text_response) -> None:
    tool_turn = {
        "stop_reason": "tool_use",
        "content": [{"type": "tool_use", "id": "toolu_1", "name": "lookup", "input": {}}],
    }
    client = scripted_client(tool_turn, make_text_response("ok"))

    session = run_tool_session(client, "system", "本文")

    assert session.text == "ok"
    assert [m["role"] for m in client.calls[1]["messages"]] == ["user", "assistant"]


def test_pause_turn_resubmits(scripted_client, make_text_response) -> None:
    client = scripted_client(make_text_response("前半", stop_reason="pause_turn"), make_text_response("後半"))

    session = run_tool_session(client, "system", "本文")

    assert session.state is SessionState.DONE
    assert session.text == "前半後半"
    assert len(client.calls) == 2


def test_loop_halts_after_budget_without_terminal_stop(scripted_client) -> None:
    never_done = {
        "stop_reason": "tool_use",
        "content": [
            {"type": "text", "text": "x"},
            {"type": "server_tool_use", "id": "srvtoolu_loop", "name": "web_search", "input": {}},
        ],
    }
    client = scripted_client(never_done, repeat_last=True)

    session = run_tool_session(client, "system", "本文", tools=SEARCH_TOOL, max_iterations=10)

    assert session.state is SessionState.EXHAUSTED
    assert len(client.calls) == 10
    assert session.text == "x" * 10
    assert session.remaining == 0


def test_max_tokens_without_tool_request_keeps_partial_text(scripted_client, make_text_response) -> None:
    client = scripted_client(make_text_response('{"factCheck": [', stop_reason="max_tokens"))

    session = run_tool_session(client, "system", "本文")

    assert session.state is SessionState.DONE
    assert session.text == '{"factCheck": ['
    assert len(client.calls) == 1


def test_absorb_collects_text_from_every_block() -> None:
    session = ToolSession.start("本文", max_iterations=3)

    session.absorb(
        {
            "stop_reason": "end_turn",
            "content": [
                {"type": "text", "text": "a"},
                {"type": "web_search_tool_result", "tool_use_id": "srvtoolu_1", "content": []},
                {"type": "text", "text": "b"},
            ],
        }
    )

    assert session.text == "ab"
    assert session.finished
