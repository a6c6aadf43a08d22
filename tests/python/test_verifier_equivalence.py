"""Differential tests: optimised chains behave exactly like their inputs."""

from __future__ import annotations

import random

import pytest

from chainopt.dsl import generators, grammar
from chainopt.dsl.ast import Expression
from chainopt.dsl.tokens import ElementToken, NumberToken, Operation, OperationToken
from chainopt.optimizer.chain import optimize_call_chain
from chainopt.verifier import EvaluationError, check_equivalence, evaluate_expression, run_chain


def _random_arithmetic(rng: random.Random, depth: int) -> str:
    if depth <= 0 or rng.random() < 0.3:
        return rng.choice(["element", str(rng.randint(-5, 5))])
    op = rng.choice("+-*")
    return f"({_random_arithmetic(rng, depth - 1)}{op}{_random_arithmetic(rng, depth - 1)})"


def _random_boolean(rng: random.Random, depth: int) -> str:
    if depth <= 0 or rng.random() < 0.5:
        op = rng.choice("<>=")
        return f"({_random_arithmetic(rng, 2)}{op}{_random_arithmetic(rng, 2)})"
    op = rng.choice("&|")
    return f"({_random_boolean(rng, depth - 1)}{op}{_random_boolean(rng, depth - 1)})"


def _random_chain(rng: random.Random) -> str:
    calls = []
    for _ in range(rng.randint(1, 3)):
        if rng.random() < 0.5:
            calls.append(f"map{{{_random_arithmetic(rng, 2)}}}")
        else:
            calls.append(f"filter{{{_random_boolean(rng, 2)}}}")
    return "%>%".join(calls)


def test_evaluate_expression() -> None:
    assert evaluate_expression(grammar.parse_expression("((element*element)-1)"), 4) == 15
    assert evaluate_expression(grammar.parse_expression("((element>1)&(element<3))"), 2) is True


def test_evaluate_rejects_mixed_types() -> None:
    with pytest.raises(EvaluationError):
        evaluate_expression(
            Expression.of(ElementToken(), NumberToken(1), OperationToken(Operation.AND)), 0
        )
    with pytest.raises(EvaluationError):
        evaluate_expression(grammar.parse_expression("(element+1)").tokens[:2], 0)


def test_run_chain_applies_calls_in_order() -> None:
    chain = grammar.parse_call_chain("map{(element+1)}%>%filter{(element>2)}%>%map{(element*10)}")
    assert run_chain(chain, 2) == 30
    assert run_chain(chain, 1) is None


@pytest.mark.parametrize(
    "case",
    list(generators.generate_chain_cases("optimizer")),
    ids=lambda case: case.name,
)
def test_fixture_chains_are_equivalent(case: generators.ChainCase) -> None:
    chain = grammar.parse_call_chain(case.source)
    report = check_equivalence(chain, optimize_call_chain(chain))
    assert report.ok, report.to_dict()
    assert report.checked == 101


def test_random_chains_are_equivalent() -> None:
    rng = random.Random(20240229)
    for _ in range(200):
        source = _random_chain(rng)
        chain = grammar.parse_call_chain(source)
        optimized = optimize_call_chain(chain)
        assert len(optimized) == 2
        report = check_equivalence(chain, optimized, range(-20, 21))
        assert report.ok, (source, report.to_dict())


def test_mismatch_reports_counterexample() -> None:
    original = grammar.parse_call_chain("map{(element+1)}")
    wrong = grammar.parse_call_chain("filter{(1=1)}%>%map{(element+2)}")
    report = check_equivalence(original, wrong, [3, 4])
    assert report.status == "failed"
    assert report.checked == 1
    assert report.counterexample == {"input": 3, "expected": 4, "actual": 5}


def test_evaluator_dispatches_on_operation_kind() -> None:
    for source, value, expected in [
        ("(element*3)", 4, 12),
        ("(element>3)", 4, True),
        ("((element>3)|(element<0))", 2, False),
    ]:
        assert evaluate_expression(grammar.parse_expression(source), value) == expected
