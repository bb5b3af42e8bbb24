"""
Tests for wikiclient/query.py: continuation threading, termination, and
sticky errors.
"""

from __future__ import annotations

import pytest
import requests

from wikiclient import APIError, DecodeError, QueryState, TransportError, Values


CONTINUED = '{"continue":{"fkcontinue":"X","continue":"-||"},"query":{"pages":[{"pageid":1}]}}'


class TestContinuation:
    def test_two_page_query(self, client, wiki):
        wiki.reply(CONTINUED, "{}")
        q = client.new_query(Values())

        assert q.advance() is True
        first = wiki.requests[0]
        assert first.params["action"] == "query"
        assert first.params["continue"] == ""
        assert "fkcontinue" not in first.params
        assert q.resp["query"]["pages"] == [{"pageid": 1}]

        assert q.advance() is True
        second = wiki.requests[1]
        assert second.params["continue"] == "-||"
        assert second.params["fkcontinue"] == "X"
        assert q.resp == {}

        assert q.advance() is False
        assert q.err is None
        assert q.state is QueryState.EXHAUSTED
        assert len(wiki.requests) == 2

    def test_no_requests_after_exhaustion(self, client, wiki):
        wiki.reply("{}")
        q = client.new_query(Values())
        assert q.advance() is True
        assert q.advance() is False
        assert q.advance() is False
        assert len(wiki.requests) == 1
        assert q.requests_made == 1

    def test_later_values_overwrite_earlier_ones(self, client, wiki):
        wiki.reply(
            '{"continue":{"cmcontinue":"page|A","continue":"-||"}}',
            '{"continue":{"cmcontinue":"page|B","continue":"-||"}}',
            '{"batchcomplete":true}',
        )
        q = client.new_query(Values({"list": "categorymembers", "cmtitle": "Category:Soap"}))

        responses = list(q)

        assert len(responses) == 3
        assert [r.params.get("cmcontinue") for r in wiki.requests] == [None, "page|A", "page|B"]
        assert all(r.params["cmtitle"] == "Category:Soap" for r in wiki.requests)
        assert q.err is None

    def test_action_forced_to_query(self, client, wiki):
        wiki.reply("{}")
        q = client.new_query(Values({"action": "parse"}))
        q.advance()
        assert wiki.last.params["action"] == "query"

    def test_caller_params_not_mutated(self, client, wiki):
        wiki.reply(CONTINUED, "{}")
        params = Values({"list": "allpages"})
        q = client.new_query(params)
        while q.advance():
            pass
        assert params == {"list": "allpages"}

    def test_state_before_first_advance(self, client):
        q = client.new_query()
        assert q.state is QueryState.NOT_STARTED
        assert q.resp is None
        assert q.err is None


class TestErrors:
    def test_error_on_first_request(self, client, wiki):
        wiki.reply('{"error":{"code":"badvalue","info":"Unrecognized value for parameter \\"list\\"."}}')
        q = client.new_query(Values({"list": "nonsense"}))

        assert q.advance() is False
        assert isinstance(q.err, APIError)
        assert q.resp is None
        assert q.state is QueryState.ERRORED

    def test_error_on_second_request_keeps_first_response(self, client, wiki):
        wiki.reply(CONTINUED, requests.ConnectionError("connection reset"))
        q = client.new_query(Values())

        assert q.advance() is True
        assert q.advance() is False
        assert isinstance(q.err, TransportError)
        assert q.resp["continue"]["fkcontinue"] == "X"

    def test_error_is_sticky(self, client, wiki):
        wiki.reply("not json")
        q = client.new_query(Values())
        assert q.advance() is False
        err = q.err
        assert q.advance() is False
        assert q.err is err
        assert len(wiki.requests) == 1

    @pytest.mark.parametrize("body", [
        '{"continue":"-||"}',
        '{"continue":{"fkcontinue":5}}',
    ])
    def test_malformed_continue_is_decode_error(self, client, wiki, body):
        wiki.reply(body)
        q = client.new_query(Values())
        assert q.advance() is True
        assert q.advance() is False
        assert isinstance(q.err, DecodeError)
        assert len(wiki.requests) == 1

    def test_iteration_stops_on_error(self, client, wiki):
        wiki.reply(CONTINUED, '{"error":{"code":"internal_api_error","info":"boom"}}')
        q = client.new_query(Values())
        assert len(list(q)) == 1
        assert q.err.code == "internal_api_error"
