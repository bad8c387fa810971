import pytest

from domains.log import LogDomain
from domains.mock import MockDomain
from engine.errors import RuleConfigError, RuleNotApplicable
from engine.rules import AliasSpec, ClassSpec, ResultSpec, RuleFactory, RuleSpec


def _domains():
    return {
        "mock": MockDomain(class_names=["a", "b", "pod", "deployment"]),
        "log": LogDomain(),
    }


def _spec(name="r1", start=None, goal=None, query="log:application:{app=\"x\"}", constraint=None):
    return RuleSpec(
        name=name,
        start=start or ClassSpec(domain="mock", classes=["a"]),
        goal=goal or ClassSpec(domain="log", classes=["application"]),
        result=ResultSpec(query=query, constraint=constraint),
    )


def test_expands_cartesian_product_of_classes():
    f = RuleFactory(_domains())
    rules = f.build(_spec(
        start=ClassSpec(domain="mock", classes=["a", "b"]),
        goal=ClassSpec(domain="log", classes=["application", "audit"]),
    ))
    assert sorted(str(r) for r in rules) == [
        "r1(mock:a)->log:application",
        "r1(mock:a)->log:audit",
        "r1(mock:b)->log:application",
        "r1(mock:b)->log:audit",
    ]


def test_empty_class_list_means_every_class():
    f = RuleFactory(_domains())
    rules = f.build(_spec(goal=ClassSpec(domain="log")))
    assert sorted(r.goal.name for r in rules) == ["application", "audit", "infrastructure"]


def test_matches_select_classes_by_pattern():
    f = RuleFactory(_domains())
    rules = f.build(_spec(goal=ClassSpec(domain="log", matches=["^a"])))
    assert sorted(r.goal.name for r in rules) == ["application", "audit"]


def test_pattern_matching_nothing_is_an_error():
    f = RuleFactory(_domains())
    with pytest.raises(RuleConfigError):
        f.build(_spec(goal=ClassSpec(domain="log", matches=["^zzz"])))


def test_aliases_expand_recursively_and_tolerate_cycles():
    aliases = [
        AliasSpec(name="workloads", domain="mock", classes=["pod", "deployment", "more"]),
        AliasSpec(name="more", domain="mock", classes=["a", "workloads"]),
    ]
    f = RuleFactory(_domains(), aliases)
    rules = f.build(_spec(start=ClassSpec(domain="mock", classes=["workloads"])))
    assert [r.start.name for r in rules] == ["pod", "deployment", "a"]


def test_unknown_domain_names_the_rule():
    f = RuleFactory(_domains())
    with pytest.raises(RuleConfigError) as info:
        f.build(_spec(name="bad-domain", goal=ClassSpec(domain="metric")))
    assert "bad-domain" in str(info.value)
    assert "metric" in str(info.value)


def test_unknown_class_names_the_rule_and_class():
    f = RuleFactory(_domains())
    with pytest.raises(RuleConfigError) as info:
        f.build(_spec(name="bad-class", goal=ClassSpec(domain="log", classes=["nope"])))
    assert "bad-class" in str(info.value)
    assert "log:nope" in str(info.value)


def test_duplicate_rule_names_are_rejected():
    f = RuleFactory(_domains())
    f.build(_spec(name="same"))
    with pytest.raises(RuleConfigError):
        f.build(_spec(name="same"))


def test_unnamed_rules_get_unique_generated_names():
    f = RuleFactory(_domains())
    rules = f.build_all([_spec(name=""), _spec(name="")])
    assert [r.name for r in rules] == ["mock-log", "mock-log-2"]


def test_domain_template_functions_are_available():
    f = RuleFactory(_domains())
    query = (
        "log:{{ log_type_for_namespace(namespace) }}:"
        "{kubernetes_namespace_name={{ namespace | quote_logql }}}"
    )
    rules = f.build(_spec(
        start=ClassSpec(domain="mock", classes=["pod"]),
        goal=ClassSpec(domain="log", classes=["application", "infrastructure"]),
        query=query,
    ))
    by_goal = {r.goal.name: r for r in rules}

    q = by_goal["infrastructure"].apply({"namespace": "openshift-dns"})
    assert str(q) == 'log:infrastructure:{kubernetes_namespace_name="openshift-dns"}'
    with pytest.raises(RuleNotApplicable):
        by_goal["application"].apply({"namespace": "openshift-dns"})
    assert by_goal["application"].apply({"namespace": "shop"}).class_.name == "application"


def test_template_syntax_error_is_a_config_error():
    f = RuleFactory(_domains())
    with pytest.raises(RuleConfigError) as info:
        f.build(_spec(name="broken", query="{% if %}"))
    assert "broken" in str(info.value)
