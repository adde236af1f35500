import threading

from prompt_toolkit.completion import CompleteEvent
from prompt_toolkit.document import Document

import rink_helper
from rink_helper import MAX_CANDIDATES, QUERY_LIMIT, RinkCompleter, SharedContext
from unit_engine import QueryResult, Reply


def make_completer(ctx, config, **kwargs):
    return RinkCompleter(SharedContext(ctx), config, **kwargs)


def test_shared_context_hands_out_the_same_context(ctx):
    shared = SharedContext(ctx)
    with shared.lock() as inner:
        assert inner is ctx


def test_shared_context_is_exclusive(ctx):
    shared = SharedContext(ctx)
    acquired = []
    with shared.lock():
        t = threading.Thread(target=lambda: acquired.append(shared._lock.acquire(timeout=0.05)))
        t.start()
        t.join()
    assert acquired == [False]


def test_candidates_start_with_word(ctx, config):
    candidates = make_completer(ctx, config).complete('mete')
    assert 0 < len(candidates) <= MAX_CANDIDATES
    for c in candidates:
        assert c.text.startswith('mete')
        assert c.start_position == -4
    assert 'meter' in [c.text for c in candidates]


def test_display_is_rendered_by_the_formatter(ctx, config):
    candidates = make_completer(ctx, config).complete('meter')
    meter = next(c for c in candidates if c.text == 'meter')
    assert meter.display_text == 'meter (length)'


def test_empty_word_is_allowed(ctx, config):
    candidates = make_completer(ctx, config).complete('')
    assert len(candidates) == MAX_CANDIDATES
    assert all(c.start_position == 0 for c in candidates)


def fake_query(results, calls=None):
    def _query(ctx, word, limit):
        if calls is not None:
            calls.append((word, limit))
        return Reply(results=results)
    return _query


def test_results_without_unit_are_skipped(ctx, config, monkeypatch):
    monkeypatch.setattr(rink_helper, 'query', fake_query([
        QueryResult(unit=None),
        QueryResult(unit='meter'),
        QueryResult(unit='kilometer'),
    ]))
    candidates = make_completer(ctx, config).complete('me')
    assert [c.text for c in candidates] == ['meter']


def test_prefix_filter_is_case_sensitive(ctx, config, monkeypatch):
    monkeypatch.setattr(rink_helper, 'query', fake_query([
        QueryResult(unit='Meter'),
        QueryResult(unit='meter'),
    ]))
    assert [c.text for c in make_completer(ctx, config).complete('me')] == ['meter']


def test_truncates_to_ten_in_engine_order(ctx, config, monkeypatch):
    calls = []
    names = ['unit%02d' % i for i in range(15)]
    monkeypatch.setattr(rink_helper, 'query', fake_query([QueryResult(unit=n) for n in names], calls))
    candidates = make_completer(ctx, config).complete('unit')
    assert [c.text for c in candidates] == names[:10]
    assert calls == [('unit', QUERY_LIMIT)]


def test_get_completions_uses_identifier_before_cursor(ctx, config):
    completer = make_completer(ctx, config)
    doc = Document('3 * (10 kilomet')
    texts = [c.text for c in completer.get_completions(doc, CompleteEvent(completion_requested=True))]
    assert 'kilometer' in texts
    assert all(t.startswith('kilomet') for t in texts)


def test_bell_rings_only_for_requested_completion_without_candidates(ctx, config, monkeypatch):
    rung = []
    completer = make_completer(ctx, config, bell_style='none')
    monkeypatch.setattr(completer, 'ring_bell', lambda: rung.append(True))
    doc = Document('zzzqqq')
    assert list(completer.get_completions(doc, CompleteEvent(completion_requested=True))) == []
    assert rung == [True]

    rung.clear()
    list(completer.get_completions(doc, CompleteEvent(completion_requested=False)))
    assert rung == []


def test_silent_bell_styles_do_not_touch_the_terminal(ctx, config, monkeypatch):
    def get_app():
        raise AssertionError('bell rang')

    monkeypatch.setattr(rink_helper, 'get_app', get_app)
    make_completer(ctx, config, bell_style='none').ring_bell()
    make_completer(ctx, config, bell_style='visible').ring_bell()
