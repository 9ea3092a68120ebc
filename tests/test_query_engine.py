"""
Tests for query parsing, sequential and parallel execution, and export order.
"""

from webindex.index import InvertedIndex, WordIndex
from webindex.search import QueryEngine, canonical_query, query, query_text


def sample_index():
    index = InvertedIndex()
    index.add_document("doc1.html", WordIndex(["cat", "dog", "category"]))
    index.add_document("doc2.html", WordIndex(["cat", "bird", "bird", "cat"]))
    index.add_document("Doc3.html", WordIndex(["dogma", "catalog"]))
    return index


QUERY_LINES = [
    "Dog cat",
    "",
    "cat dog dog",
    "bird",
    "cat",
    "   !!!   ",
    "zebra",
    "cat dog bird",
]


def test_canonical_query():
    assert canonical_query(["dog", "cat", "dog"]) == ("cat", "dog")
    assert canonical_query([]) == ()
    assert query_text(("cat", "dog")) == "cat dog"


def test_load_queries_normalizes_and_keeps_empty_lines():
    engine = QueryEngine()
    engine.load_queries(QUERY_LINES)

    assert engine.queries == [
        ("cat", "dog"), (), ("cat", "dog"), ("bird",), ("cat",), (), ("zebra",),
        ("bird", "cat", "dog"),
    ]


def test_run_sequential_exact():
    engine = QueryEngine()
    engine.load_queries(QUERY_LINES)

    results = engine.run_sequential(sample_index(), exact=True)

    assert results[()] == []
    assert results[("zebra",)] == []
    assert [(r.where, r.count, r.first_position) for r in results[("cat",)]] == [
        ("doc2.html", 2, 1),
        ("doc1.html", 1, 1),
    ]
    assert [r.where for r in engine.get_results(["dog", "cat"])] == ["doc1.html", "doc2.html"]


def test_export_order_and_format():
    engine = QueryEngine()
    engine.load_queries(QUERY_LINES)
    engine.run_sequential(sample_index(), exact=True)

    exported = engine.export()

    assert [record['queries'] for record in exported] == [
        "bird", "bird cat dog", "cat", "cat dog", "zebra"
    ]
    assert exported[0]['results'] == [{'where': 'doc2.html', 'count': 2, 'index': 2}]
    assert exported[-1]['results'] == []


def test_shorter_query_sorts_before_longer_with_same_words():
    engine = QueryEngine()
    engine.load_queries(["ab", "a b", "a", "a b c"])
    engine.run_sequential(InvertedIndex())

    assert [key for key in engine.sorted_queries()] == [
        ("a",), ("a", "b"), ("a", "b", "c"), ("ab",)
    ]


def test_partial_search_queries():
    engine = QueryEngine()
    engine.load_queries(["cat", "dog"])

    results = engine.run_sequential(sample_index(), exact=False)

    assert [(r.where, r.count) for r in results[("cat",)]] == [
        ("doc1.html", 2),
        ("doc2.html", 2),
        ("Doc3.html", 1),
    ]
    assert [(r.where, r.count, r.first_position) for r in results[("dog",)]] == [
        ("Doc3.html", 1, 1),
        ("doc1.html", 1, 2),
    ]


def test_parallel_matches_sequential(work_queue, monitor):
    index = sample_index()
    lines = QUERY_LINES + [f"cat word{i}" for i in range(50)]

    sequential = QueryEngine()
    sequential.load_queries(lines)
    sequential.run_sequential(index, exact=False)

    parallel = QueryEngine(monitor=monitor)
    parallel.load_queries(lines)
    parallel.run_parallel(work_queue, index, exact=False)

    assert parallel.export() == sequential.export()
    assert monitor.get_summary()['queries_partial'] == len(set(parallel.queries)) - 1


def test_parse_file(tmp_path):
    query_file = tmp_path / "queries.txt"
    query_file.write_text("Cat\n\nbird DOG\n", encoding='utf-8')

    engine = QueryEngine()
    engine.parse_file(query_file)

    assert engine.queries == [("cat",), (), ("bird", "dog")]


def test_query_helper():
    index = sample_index()

    assert [r.where for r in query(index, ["bird", "bird"])] == ["doc2.html"]
    assert [r.where for r in query(index, ["catal"], exact=False)] == ["Doc3.html"]
