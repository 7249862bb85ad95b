import math

import pytest

from site_crawl.config import CrawlConfig
from site_crawl.crawler.models import CrawlResult, Page, PageStatus
from site_crawl.crawler.ranking import RANKING_IMPLEMENTATION, LinkGraph, apply_scores, compute_scores


def graph_of(*edges, nodes=()):
    graph = LinkGraph()
    for node in nodes:
        graph.add_node(node)
    for src, dst in edges:
        graph.add_edge(src, dst)
    return graph


def test_empty_graph_has_no_scores():
    assert compute_scores(LinkGraph()) == ({}, [])
    assert compute_scores(None) == ({}, [])


def test_edgeless_graph_is_uniform_in_lexical_order():
    scores, order = compute_scores(graph_of(nodes=["c", "a", "b"]))

    assert order == ["a", "b", "c"]
    assert all(math.isclose(v, 1 / 3) for v in scores.values())


def test_most_linked_page_ranks_first():
    scores, order = compute_scores(graph_of(("a", "b"), ("b", "c"), ("c", "b")))

    assert order == ["b", "c", "a"]
    assert scores["b"] > scores["c"] > scores["a"]
    assert math.isclose(sum(scores.values()), 1.0)


def test_dangling_nodes_keep_mass_normalized():
    scores, order = compute_scores(graph_of(("hub", "x"), ("hub", "y"), ("x", "hub")))

    assert math.isclose(sum(scores.values()), 1.0)
    assert order[0] == "hub"
    assert math.isclose(scores["x"], scores["y"])
    assert order.index("x") < order.index("y")


def test_duplicate_edges_collapse():
    graph = graph_of(("a", "b"), ("a", "b"), ("a", "a"))
    assert graph.edge_count() == 2
    assert len(graph) == 2


def test_blank_endpoints_are_ignored():
    graph = graph_of(("", "b"), ("a", ""))
    assert len(graph) == 0


def _page(url, status=PageStatus.OK):
    return Page(url=url, final_url=url, depth=0, status=status)


def test_apply_scores_orders_pages_and_puts_unscored_last():
    result = CrawlResult(
        domain="example.com",
        allowed_hosts=["example.com", "www.example.com"],
        config=CrawlConfig(domain="example.com", strategy="pagerank"),
    )
    result.pages = [
        _page("https://example.com/"),
        _page("https://example.com/secret", PageStatus.SKIPPED_ROBOTS),
        _page("https://example.com/a"),
        _page("https://example.com/b"),
        _page("https://example.com/orphan"),
    ]
    graph = graph_of(
        ("https://example.com/", "https://example.com/a"),
        ("https://example.com/", "https://example.com/b"),
        ("https://example.com/b", "https://example.com/a"),
        ("https://example.com/a", "https://example.com/"),
    )

    apply_scores(result, graph)

    assert result.ranking == RANKING_IMPLEMENTATION
    assert result.pages[0].url == "https://example.com/a"
    ranked = [p for p in result.pages if p.score is not None]
    assert [p.score for p in ranked] == sorted((p.score for p in ranked), reverse=True)
    # not a graph node / not an ok page
    assert [p.url for p in result.pages[-2:]] == ["https://example.com/orphan", "https://example.com/secret"]
    assert result.pages[-1].score is None


@pytest.mark.parametrize("damping", [0.5, 0.85, 0.99])
def test_scores_always_sum_to_one(damping):
    scores, _ = compute_scores(graph_of(("a", "b"), ("b", "a"), ("c", "a"), ("d", "d")), damping=damping)
    assert math.isclose(sum(scores.values()), 1.0)


def test_unscored_pages_fall_back_to_url_order():
    result = CrawlResult(
        domain="example.com",
        allowed_hosts=["example.com", "www.example.com"],
        config=CrawlConfig(domain="example.com", strategy="pagerank"),
    )
    result.pages = [
        _page("https://example.com/"),
        # a graph node, but unscored because it was not fetched
        _page("https://example.com/z", PageStatus.SKIPPED_ROBOTS),
        # fetched, but never linked
        _page("https://example.com/m"),
    ]

    apply_scores(result, graph_of(("https://example.com/", "https://example.com/z")))

    assert [p.url for p in result.pages] == [
        "https://example.com/",
        "https://example.com/m",
        "https://example.com/z",
    ]
    assert [p.score is None for p in result.pages] == [False, True, True]
