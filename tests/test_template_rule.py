from datetime import datetime, timezone

import pytest

from domains.log import LogDomain
from domains.mock import MockDomain
from engine.constraint import Constraint
from engine.errors import GoalMismatchError, RuleApplyError, RuleConfigError, RuleNotApplicable
from engine.rules.template import TemplateRule, compile_template, new_environment


def _rule(domain, query, goal="b", constraint=None, siblings=()):
    env = new_environment()
    q = compile_template(env, "r", query)
    c = compile_template(env, "r", constraint) if constraint else None
    goal_class = domain.class_(goal)
    return TemplateRule("r", domain.class_("a"), goal_class, q, c, siblings=siblings)


def test_renders_object_fields_into_goal_query():
    d = MockDomain()
    rule = _rule(d, 'mock:b:["{{ name }}-{{ this.id }}"]')
    q = rule.apply({"name": "x", "id": 1})
    assert q.class_ == d.class_("b")
    assert str(q) == 'mock:b:["x-1"]'
    assert q.results == ["x-1"]


def test_this_holds_non_mapping_objects():
    d = MockDomain()
    rule = _rule(d, "mock:b:[{{ this * 2 }}]")
    assert rule.apply(21).results == [42]


def test_blank_render_does_not_apply():
    d = MockDomain()
    rule = _rule(d, "{% if name == 'yes' %}mock:b:[1]{% endif %}")
    assert rule.apply({"name": "yes"}).results == [1]
    with pytest.raises(RuleNotApplicable):
        rule.apply({"name": "no"})


def test_missing_field_does_not_apply():
    d = MockDomain()
    rule = _rule(d, "mock:b:[{{ missing }}]")
    with pytest.raises(RuleNotApplicable):
        rule.apply({"name": "x"})


def test_unparseable_query_is_an_apply_error():
    log_domain = LogDomain()
    env = new_environment()
    rule = TemplateRule(
        "to-logs",
        MockDomain().class_("pod"),
        log_domain.class_("application"),
        compile_template(env, "to-logs", "log:application:not a selector"),
    )
    with pytest.raises(RuleApplyError) as info:
        rule.apply({})
    assert "to-logs" in str(info.value)


def test_wrong_goal_class_fails_loudly():
    d = MockDomain()
    rule = _rule(d, "mock:c:[1]", goal="b")
    with pytest.raises(GoalMismatchError):
        rule.apply({})


def test_query_for_sibling_goal_does_not_apply():
    d = MockDomain()
    rule = _rule(d, "mock:c:[1]", goal="b", siblings=[d.class_("b"), d.class_("c")])
    with pytest.raises(RuleNotApplicable):
        rule.apply({})


def test_constraint_and_rule_helpers():
    d = MockDomain()
    rule = _rule(d, 'mock:b:[{{ constraint().limit }}, "{{ rule().name }}"]')
    assert rule.apply({}, Constraint(limit=7)).results == [7, "r"]


def test_constraint_template_narrows_constraint():
    d = MockDomain()
    rule = _rule(d, "mock:b:[1]", constraint='{"limit": {{ n }}}')
    narrowed = rule.constraint({"n": 3}, Constraint(limit=10))
    assert narrowed.limit == 3
    assert rule.constraint({"n": 30}, Constraint(limit=10)).limit == 10


def test_bad_constraint_template_output_is_an_apply_error():
    d = MockDomain()
    rule = _rule(d, "mock:b:[1]", constraint="not json")
    with pytest.raises(RuleApplyError):
        rule.constraint({}, None)


def test_filters():
    env = new_environment()
    t = env.from_string("{{ v | json }} {{ s | quote_logql }} {{ t | rfc3339 }} {{ t | unix_nano }}")
    when = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    out = t.render(v={"b": 1, "a": [2]}, s='say "hi"', t=when)
    assert out == '{"a": [2], "b": 1} "say \\"hi\\"" 2024-01-02T03:04:05Z 1704164645000000000'


def test_syntax_error_is_a_config_error_naming_the_rule():
    with pytest.raises(RuleConfigError) as info:
        compile_template(new_environment(), "broken", "{{ oops ")
    assert "broken" in str(info.value)
