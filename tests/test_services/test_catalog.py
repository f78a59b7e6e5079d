from __future__ import annotations

import pytest

from app.integrations.github import TemplateRef
from app.services.catalog import (
    FilterCriteria,
    KeywordClassifier,
    TemplateSummary,
    facet_values,
    filter_templates,
    format_workflow_name,
    sort_templates,
    summarize_template,
)

from conftest import make_workflow


def _item(name, **overrides):
    data = dict(
        name=name,
        display_name=format_workflow_name(name),
        description="",
        category="general",
        trigger="manual",
        complexity="low",
        node_count=1,
        tags=[],
    )
    data.update(overrides)
    return TemplateSummary(**data)


@pytest.mark.parametrize(
    "nodes, expected",
    [(0, "low"), (5, "low"), (6, "medium"), (15, "medium"), (16, "high")],
)
def test_complexity_boundaries(nodes, expected):
    assert KeywordClassifier().complexity(nodes) == expected


def test_category_prefers_node_types_over_file_name():
    classifier = KeywordClassifier()
    assert classifier.category(["n8n-nodes-base.slack"], "github-backup.json") == "communication"
    assert classifier.category(["n8n-nodes-base.set"], "github-backup.json") == "devops"
    assert classifier.category([], "misc.json") == "general"


def test_trigger_detection():
    classifier = KeywordClassifier()
    assert classifier.trigger(["n8n-nodes-base.webhook", "n8n-nodes-base.set"]) == "webhook"
    assert classifier.trigger(["n8n-nodes-base.scheduleTrigger"]) == "schedule"
    assert classifier.trigger(["n8n-nodes-base.gmailTrigger"]) == "event"
    assert classifier.trigger(["n8n-nodes-base.set"]) == "manual"


def test_summarize_uses_explicit_tags_and_marks_unloaded_templates():
    ref = TemplateRef(
        name="slack-notification.json",
        path="workflows/slack-notification.json",
        sha="1",
        download_url="https://raw/slack-notification.json",
        content=make_workflow(
            node_types=["n8n-nodes-base.webhook", "n8n-nodes-base.slack"],
            tags=[{"id": "1", "name": "Alerts"}],
        ),
    )
    summary = summarize_template(ref)
    assert summary.display_name == "Slack Notification"
    assert summary.description == "Send notifications to Slack channels"
    assert summary.tags == ["Alerts"]
    assert summary.node_count == 2
    assert summary.trigger == "webhook"

    missing = summarize_template(TemplateRef("x.json", "x.json", "2", "https://raw/x.json"))
    assert missing.loaded is False
    assert missing.node_count == 0


def test_search_is_case_insensitive_across_fields():
    items = [
        _item("a.json", description="Sync CRM contacts"),
        _item("b.json", category="Communication"),
        _item("c.json", trigger="webhook"),
        _item("d.json", tags=["Finance"]),
        _item("e.json"),
    ]
    assert [i.name for i in filter_templates(items, FilterCriteria(search="crm"))] == ["a.json"]
    assert [i.name for i in filter_templates(items, FilterCriteria(search="COMMUN"))] == ["b.json"]
    assert [i.name for i in filter_templates(items, FilterCriteria(search="WebHook"))] == ["c.json"]
    assert [i.name for i in filter_templates(items, FilterCriteria(search="finance"))] == ["d.json"]
    assert len(filter_templates(items, FilterCriteria(search=""))) == 5


def test_multi_select_and_node_range_filters():
    items = [
        _item("a.json", complexity="low", node_count=3, tags=["ai"]),
        _item("b.json", complexity="medium", node_count=9, tags=["slack"]),
        _item("c.json", complexity="high", node_count=20, tags=["ai", "slack"]),
    ]
    picked = filter_templates(items, FilterCriteria(complexities=["low", "high"]))
    assert [i.name for i in picked] == ["a.json", "c.json"]

    picked = filter_templates(items, FilterCriteria(tags=["slack"]))
    assert [i.name for i in picked] == ["b.json", "c.json"]

    picked = filter_templates(items, FilterCriteria(min_nodes=3, max_nodes=9))
    assert [i.name for i in picked] == ["a.json", "b.json"]

    assert len(filter_templates(items, FilterCriteria(active_only=True))) == 3


def test_sort_keys_and_direction():
    items = [
        _item("beta.json", complexity="high", last_updated="2024-03-01", rating=3, popularity=10),
        _item("Alpha.json", complexity="low", last_updated="2024-05-01", rating=5, popularity=2),
        _item("gamma.json", complexity="medium", last_updated="2024-01-01", rating=4, popularity=7),
    ]
    assert [i.name for i in sort_templates(items, "name")] == ["Alpha.json", "beta.json", "gamma.json"]
    assert [i.name for i in sort_templates(items, "date")] == ["Alpha.json", "beta.json", "gamma.json"]
    assert [i.name for i in sort_templates(items, "date", descending=False)][0] == "gamma.json"
    assert [i.complexity for i in sort_templates(items, "complexity")] == ["low", "medium", "high"]
    assert sort_templates(items, "rating", descending=True)[0].rating == 5
    assert sort_templates(items, "popularity", descending=True)[0].popularity == 10

    with pytest.raises(ValueError):
        sort_templates(items, "size")


def test_facet_values_orders_complexity():
    items = [_item("a.json", complexity="high"), _item("b.json", complexity="low")]
    assert facet_values(items)["complexities"] == ["low", "high"]


@pytest.mark.parametrize(
    "content",
    [
        {"nodes": 5},
        {"nodes": "many", "tags": "ops"},
        make_workflow(meta={"popularity": "n/a", "rating": {"stars": 4}}),
        make_workflow(meta={"popularity": float("nan"), "rating": True}),
    ],
)
def test_summarize_tolerates_malformed_bodies(content):
    ref = TemplateRef("odd.json", "workflows/odd.json", "3", "https://raw/odd.json", content=content)
    summary = summarize_template(ref)

    assert summary.popularity == 0
    assert summary.rating == 0
    expected_nodes = len(content["nodes"]) if isinstance(content["nodes"], list) else 0
    assert summary.node_count == expected_nodes
    assert summary.loaded is True


def test_summarize_reads_numeric_meta():
    ref = TemplateRef(
        "a.json", "a.json", "1", "https://raw/a.json",
        content=make_workflow(meta={"popularity": "12", "rating": 4.5}),
    )
    summary = summarize_template(ref)
    assert summary.popularity == 12
    assert summary.rating == 4.5
