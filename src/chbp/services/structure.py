"""
Structural validation of parsed rules.

Every rule is checked independently and every violation is collected; a
broken rule never hides problems in the others.
"""

from typing import Iterable, List

from ..domain.exceptions import RuleParseError
from ..domain.models import ExampleKind, Impact, Rule, StructuralViolation

VALID_IMPACTS = ", ".join(member.value for member in Impact)


class StructuralValidator:
    """
    Checks rules against the content contract.
    """

    def validate(self, rules: Iterable[Rule]) -> List[StructuralViolation]:
        """
        Validate every rule and return all violations found.

        Args:
            rules: Parsed rules

        Returns:
            List[StructuralViolation]: Empty when every rule is complete
        """
        violations: List[StructuralViolation] = []
        for rule in rules:
            violations.extend(
                StructuralViolation(file=rule.filename, rule_title=rule.title, reason=reason)
                for reason in self.check_rule(rule)
            )
        return violations

    def check_rule(self, rule: Rule) -> List[str]:
        """Return the reasons one rule fails the contract."""
        reasons: List[str] = []

        if not rule.title.strip():
            reasons.append("Missing title")
        if not rule.explanation.strip():
            reasons.append("Missing explanation")
        if not Impact.is_valid(rule.impact):
            shown = rule.impact or "(none)"
            reasons.append(f"Invalid impact '{shown}'; expected one of: {VALID_IMPACTS}")

        if not rule.examples:
            # One finding covers the missing negative, positive and code checks
            reasons.append("Missing code examples: no fenced code block found")
            return reasons

        if not rule.examples_of(ExampleKind.NEGATIVE):
            reasons.append("Missing incorrect example (label with 'Incorrect', 'Wrong' or 'Bad')")
        if not rule.examples_of(ExampleKind.POSITIVE):
            reasons.append("Missing correct example (label with 'Correct', 'Good', 'Usage' or 'Example')")
        if not any(example.has_code for example in rule.examples):
            reasons.append("Missing example code: every code block is empty")

        return reasons

    @staticmethod
    def parse_error_violations(errors: Iterable[RuleParseError]) -> List[StructuralViolation]:
        """Turn per-file parse errors into report entries."""
        return [
            StructuralViolation(file=error.filename, rule_title="", reason=f"Parse error: {error.message}")
            for error in errors
        ]
