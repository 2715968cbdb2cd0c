# python
"""
Tokenizer behavioral tests.

Scope
- Validate splitting, quoting (merge, unterminated, empty) and positional order.
- Validate boolean flags, value flags, the "--" terminator and the reserved -? flag.
- Validate tokenizer faults (duplicated value flag, missing flag value) and hanging input.
- Validate suggestion contexts and verbatim joins over the original text.

Conventions
- Test method names follow CamelCase per project convention.
- Contexts are built from full command lines unless the test is about CommandContext.of().
"""

import unittest
from unittest import TestCase

from herald import (
    CommandContext,
    DuplicatedFlagError,
    MissingFlagValueError,
    Namespace,
    SuggestionContext,
    split,
)


class TestSplit(TestCase):
    def testKeepsEmptySegments(self):
        self.assertEqual(split("a  b "), ["a", "", "b", ""])

    def testEmptyText(self):
        self.assertEqual(split(""), [""])

    def testRejectsNonString(self):
        with self.assertRaises(TypeError):
            split(["a"])


class TestCommandContext(TestCase):
    """Positional tokens, quoting and flags."""

    def testOfUsesPlaceholderCommand(self):
        context = CommandContext.of(["test"])
        self.assertEqual(context.command, "_")
        self.assertEqual(context.get_string(0), "test")
        self.assertEqual(len(context), 1)

    def testCommandAndArguments(self):
        context = CommandContext(["action", "test"])
        self.assertEqual(context.command, "action")
        self.assertEqual(context.get_string(0), "test")
        self.assertEqual(len(context), 1)

    def testParsing(self):
        context = CommandContext("cmd alpha bravo")
        self.assertEqual(context.command, "cmd")
        self.assertEqual(context.get_string(0), "alpha")
        self.assertEqual(context.get_string(1), "bravo")
        for flag in "abcd":
            self.assertFalse(context.has_flag(flag))
        self.assertEqual(len(context), 2)

    def testFlagParsing(self):
        context = CommandContext("cmd -ac alpha bravo -d")
        self.assertEqual(context.arguments, ["alpha", "bravo"])
        self.assertTrue(context.has_flag("a"))
        self.assertFalse(context.has_flag("b"))
        self.assertTrue(context.has_flag("c"))
        self.assertTrue(context.has_flag("d"))
        self.assertEqual(len(context), 2)

    def testValueFlagParsing(self):
        context = CommandContext("cmd -ac alpha -v value bravo -d", {"v"})
        self.assertEqual(context.arguments, ["alpha", "bravo"])
        self.assertTrue(context.has_flag("a"))
        self.assertFalse(context.has_flag("b"))
        self.assertTrue(context.has_flag("c"))
        self.assertTrue(context.has_flag("d"))
        self.assertTrue(context.has_flag("v"))
        self.assertEqual(context.get_flag("v"), "value")
        self.assertEqual(len(context), 2)

    def testValueFlagInsideCluster(self):
        context = CommandContext("cmd -av value", {"v"})
        self.assertTrue(context.has_flag("a"))
        self.assertEqual(context.get_flag("v"), "value")
        self.assertEqual(len(context), 0)

    def testFlagsMapMarksBooleanFlagsTrue(self):
        context = CommandContext("cmd -a -v x", {"v"})
        self.assertEqual(dict(context.flags_map), {"v": "x", "a": "true"})

    def testGetFlagDefault(self):
        context = CommandContext("cmd")
        self.assertIsNone(context.get_flag("v"))
        self.assertEqual(context.get_flag("v", "fallback"), "fallback")

    def testFlagIntegerAndDouble(self):
        context = CommandContext("cmd -n 12 -r 2.5", {"n", "r"})
        self.assertEqual(context.get_flag_integer("n"), 12)
        self.assertEqual(context.get_flag_double("r"), 2.5)
        self.assertEqual(context.get_flag_integer("x", 7), 7)

    def testQuotedTokenIsMerged(self):
        context = CommandContext('cmd "alpha bravo" charlie')
        self.assertEqual(context.arguments, ["alpha bravo", "charlie"])

    def testSingleQuotes(self):
        context = CommandContext("cmd 'alpha bravo' 'charlie'")
        self.assertEqual(context.arguments, ["alpha bravo", "charlie"])

    def testQuotedTokenKeepsInnerSpaces(self):
        context = CommandContext('cmd "alpha  bravo"')
        self.assertEqual(context.arguments, ["alpha  bravo"])

    def testMismatchedQuotesDoNotClose(self):
        context = CommandContext("cmd \"alpha bravo' charlie\"")
        self.assertEqual(context.arguments, ["alpha bravo' charlie"])

    def testUnterminatedQuoteStaysLiteral(self):
        context = CommandContext('cmd "alpha bravo')
        self.assertEqual(context.arguments, ['"alpha', "bravo"])

    def testEmptyQuotedStringIsDropped(self):
        context = CommandContext('cmd alpha "" bravo')
        self.assertEqual(context.arguments, ["alpha", "bravo"])

    def testEmptySegmentsAreDropped(self):
        context = CommandContext("cmd  alpha   bravo ")
        self.assertEqual(context.arguments, ["alpha", "bravo"])

    def testQuotedFlagIsStillAFlag(self):
        context = CommandContext('cmd "-a"')
        self.assertEqual(context.arguments, [])
        self.assertTrue(context.has_flag("a"))

    def testNegativeNumberIsPositional(self):
        context = CommandContext("cmd -5 -1.5")
        self.assertEqual(context.arguments, ["-5", "-1.5"])
        self.assertEqual(context.flags, set())

    def testDoubleDashEndsFlags(self):
        context = CommandContext("cmd -a -- -b charlie", {"v"})
        self.assertTrue(context.has_flag("a"))
        self.assertFalse(context.has_flag("b"))
        self.assertEqual(context.arguments, ["-b", "charlie"])

    def testDoubleDashKeepsLaterDoubleDash(self):
        context = CommandContext("cmd -- -- x")
        self.assertEqual(context.arguments, ["--", "x"])

    def testHelpFlag(self):
        context = CommandContext("cmd -?")
        self.assertTrue(context.has_flag("?"))

    def testDuplicatedValueFlag(self):
        with self.assertRaises(DuplicatedFlagError) as capture:
            CommandContext("cmd -v a -v b", {"v"})
        self.assertIn("'v'", str(capture.exception))

    def testDuplicatedBooleanFlagIsFine(self):
        context = CommandContext("cmd -a -a")
        self.assertEqual(context.flags, {"a"})

    def testMissingFlagValue(self):
        with self.assertRaises(MissingFlagValueError):
            CommandContext("cmd alpha -v", {"v"})

    def testHangingFlagAllowed(self):
        context = CommandContext("cmd alpha -v", {"v"}, hanging=True)
        self.assertFalse(context.has_flag("v"))
        self.assertEqual(context.suggestion_context, SuggestionContext.for_flag("v"))

    def testMatchesIgnoresCase(self):
        self.assertTrue(CommandContext("Body info").matches("body"))
        self.assertFalse(CommandContext("Body info").matches("info"))

    def testNamespaceIsKept(self):
        namespace = Namespace()
        self.assertIs(CommandContext("cmd", namespace=namespace).namespace, namespace)

    def testFreshNamespaceByDefault(self):
        self.assertIsInstance(CommandContext("cmd").namespace, Namespace)

    def testRequiresCommand(self):
        with self.assertRaises(ValueError):
            CommandContext([])


class TestCommandContextAccessors(TestCase):
    """Ranges, slices and verbatim joins."""

    def setUp(self):
        self.context = CommandContext('cmd alpha  "bravo charlie" -f delta')

    def testGetStringDefault(self):
        self.assertEqual(self.context.get_string(5, "none"), "none")
        with self.assertRaises(IndexError):
            self.context.get_string(5)

    def testGetRangeIsInclusive(self):
        self.assertEqual(self.context.get_range(0, 1), "alpha bravo charlie")

    def testGetRemainingString(self):
        self.assertEqual(self.context.get_remaining_string(1), "bravo charlie delta")

    def testGetJoinedStringsIsVerbatim(self):
        self.assertEqual(self.context.get_joined_strings(1), '"bravo charlie" -f delta')
        self.assertEqual(self.context.get_joined_strings(0), 'alpha  "bravo charlie" -f delta')

    def testParsedSlices(self):
        self.assertEqual(self.context.get_parsed_slice(1), ["bravo charlie", "delta"])
        self.assertEqual(self.context.get_parsed_padded_slice(2, 1), [None, "delta"])

    def testOriginalSlices(self):
        self.assertEqual(self.context.get_slice(5), ["-f", "delta"])
        self.assertEqual(self.context.get_padded_slice(6, 2), [None, None, "delta"])

    def testNumbers(self):
        context = CommandContext("cmd 12 2.5")
        self.assertEqual(context.get_integer(0), 12)
        self.assertEqual(context.get_double(1), 2.5)
        self.assertEqual(context.get_integer(4, 3), 3)


class TestSuggestionContext(TestCase):
    def testLastValue(self):
        context = CommandContext("cmd alpha", hanging=True)
        self.assertTrue(context.suggestion_context.is_last_value)

    def testHangingValue(self):
        context = CommandContext("cmd alpha ", hanging=True)
        self.assertTrue(context.suggestion_context.is_hanging_value)

    def testNoArgumentsIsHanging(self):
        self.assertTrue(CommandContext("cmd").suggestion_context.is_hanging_value)

    def testBooleanFlagLeavesHanging(self):
        context = CommandContext("cmd alpha -f")
        self.assertTrue(context.suggestion_context.is_hanging_value)

    def testValueFlagBeingTyped(self):
        context = CommandContext("cmd -v val", {"v"})
        self.assertTrue(context.suggestion_context.is_flag)
        self.assertEqual(context.suggestion_context.flag, "v")

    def testValueFlagFollowedBySpace(self):
        context = CommandContext("cmd -v val ", {"v"})
        self.assertTrue(context.suggestion_context.is_hanging_value)


if __name__ == "__main__":
    unittest.main()
