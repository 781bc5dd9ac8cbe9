"""Problem generation for each topic and difficulty tier."""

import math
import random

from .expression import evaluate
from .models import Topic, Difficulty, Problem

CLOSING_PHRASE = 'equals what?'
PERCENTAGE_CLOSING_PHRASE = 'is how much?'
EASY_PERCENTAGES = [10, 20, 25, 50, 75]

SPOKEN_OPERATORS = {
    '+': 'plus',
    '-': 'minus',
    '*': 'times',
    '/': 'divided by'
}


def _operand(n: int) -> str:
    """Render an operand, parenthesizing negatives."""
    return f'({n})' if n < 0 else str(n)


def speakable_expression(text: str) -> str:
    """Replace symbols in an expression with their spoken words."""
    return (text
            .replace(' + ', ' plus ')
            .replace(' - ', ' minus ')
            .replace(' * ', ' times ')
            .replace(' / ', ' divided by ')
            .replace('-', 'negative '))


def _speakable_number(n: int) -> str:
    return str(n).replace('-', 'negative ')


def speak_answer(problem: Problem) -> str:
    """Render the correct answer of a problem for narration."""
    display = problem.correct_answer_display()
    return display.replace('/', ' over ').replace('-', 'negative ')


def generate_integer_problem(difficulty: Difficulty, rng=random) -> Problem:
    if difficulty == Difficulty.EASY:
        a = rng.randint(-10, 10)
        b = rng.randint(1, 10)
        op = rng.choice(['+', '-'])
    elif difficulty == Difficulty.MEDIUM:
        a = rng.randint(-25, 25)
        b = rng.randint(-25, 25)
        op = rng.choice(['+', '-', '*'])
    else:
        a = rng.randint(-50, 50)
        b = rng.randint(-50, 50)
        op = rng.choice(['+', '-', '*', '/'])
        if op == '/':
            b = rng.randint(-10, 10)
            if b == 0:
                b = 1
            a = a * b

    question_text = f'{_operand(a)} {op} {_operand(b)}'
    answer = evaluate(question_text)
    speakable_text = f'{speakable_expression(question_text)} {CLOSING_PHRASE}'
    return Problem(question_text, speakable_text, answer)


def reduce_fraction(numerator: int, denominator: int) -> str:
    """Lowest-terms display of a fraction with a positive denominator."""
    if denominator < 0:
        numerator, denominator = -numerator, -denominator
    if numerator == 0:
        return '0'
    divisor = math.gcd(numerator, denominator)
    numerator //= divisor
    denominator //= divisor
    if denominator == 1:
        return str(numerator)
    return f'{numerator}/{denominator}'


def combine_fractions(n1: int, d1: int, op: str, n2: int, d2: int) -> tuple[int, int]:
    """Combine two fractions, returning (numerator, denominator) with a
    positive denominator. The result is not reduced."""
    if op == '+':
        num, den = n1 * d2 + n2 * d1, d1 * d2
    elif op == '-':
        num, den = n1 * d2 - n2 * d1, d1 * d2
    elif op == '*':
        num, den = n1 * n2, d1 * d2
    elif op == '/':
        num, den = n1 * d2, d1 * n2
    else:
        raise ValueError(f"Unknown operator: {op}")
    if den < 0:
        num, den = -num, -den
    return num, den


def generate_fraction_problem(difficulty: Difficulty, rng=random) -> Problem:
    if difficulty == Difficulty.EASY:
        d1 = rng.randint(3, 10)
        d2 = d1
        n1 = rng.randint(1, d1 - 1)
        n2 = rng.randint(1, d1 - 1)
        op = rng.choice(['+', '-'])
    elif difficulty == Difficulty.MEDIUM:
        d1 = rng.randint(3, 10)
        d2 = rng.randint(3, 10)
        n1 = rng.randint(1, d1 * 2)
        n2 = rng.randint(1, d2 * 2)
        op = rng.choice(['+', '-', '*'])
    else:
        d1 = rng.randint(3, 15)
        d2 = rng.randint(3, 15)
        # Zero numerators are bumped to 1 so division never divides by zero
        n1 = rng.randint(-d1 * 2, d1 * 2) or 1
        n2 = rng.randint(-d2 * 2, d2 * 2) or 1
        op = rng.choice(['+', '-', '*', '/'])

    question_text = f'({n1}/{d1}) {op} ({n2}/{d2})'
    speakable_text = (
        f'open bracket {_speakable_number(n1)} over {d1} close bracket '
        f'{SPOKEN_OPERATORS[op]} '
        f'open bracket {_speakable_number(n2)} over {d2} close bracket '
        f'{CLOSING_PHRASE}'
    )

    num, den = combine_fractions(n1, d1, op, n2, d2)
    return Problem(question_text, speakable_text, num / den, reduce_fraction(num, den))


def generate_percentage_problem(difficulty: Difficulty, rng=random) -> Problem:
    if difficulty == Difficulty.EASY:
        p = rng.choice(EASY_PERCENTAGES)
        n = rng.randint(2, 20) * 10
    elif difficulty == Difficulty.MEDIUM:
        p = rng.randint(5, 95)
        n = rng.randint(10, 500)
    else:
        p = rng.randint(1, 150)
        n = rng.randint(100, 10000)

    question_text = f'{p}% of {n}'
    speakable_text = f'{p} percent of {n} {PERCENTAGE_CLOSING_PHRASE}'
    return Problem(question_text, speakable_text, (p / 100) * n)


def generate_expression_problem(difficulty: Difficulty, rng=random) -> Problem:
    a = rng.randint(-10, 10)
    b = rng.randint(-10, 10)
    c = rng.randint(-5, 5)
    d = rng.randint(-5, 5)

    # One fixed template per tier
    if difficulty == Difficulty.EASY:
        question_text = f'{_operand(a)} + ({_operand(b)} * {_operand(c)})'
        answer = a + (b * c)
    elif difficulty == Difficulty.MEDIUM:
        question_text = f'({_operand(a)} + {_operand(b)}) * ({_operand(c)} - {_operand(d)})'
        answer = (a + b) * (c - d)
    else:
        e = rng.randint(1, 5)
        question_text = (f'({_operand(a)} * ({_operand(b)} - {_operand(c)})) + '
                         f'({_operand(d)} * {e})')
        answer = (a * (b - c)) + (d * e)

    speakable_text = f'{speakable_expression(question_text)} {CLOSING_PHRASE}'
    return Problem(question_text, speakable_text, float(answer))


GENERATORS = {
    Topic.INTEGER: generate_integer_problem,
    Topic.FRACTION: generate_fraction_problem,
    Topic.PERCENTAGE: generate_percentage_problem,
    Topic.EXPRESSION: generate_expression_problem
}


def generate_problem(topic: Topic, difficulty: Difficulty, rng=None) -> Problem:
    """Generate a problem for a topic and difficulty.

    ``rng`` may be any object with ``randint`` and ``choice`` (for example a
    ``random.Random``); the module-level generator is used otherwise.
    """
    generator = GENERATORS[Topic(topic)]
    return generator(Difficulty(difficulty), rng or random)
