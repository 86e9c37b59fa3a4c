"""
Commands module behavioral tests (dispatch, capabilities, invoke, cancellation).

Scope
- Validate routing through nested Subcommands and exit statuses.
- Validate the unpack / invalid-flags / set-args pipeline order.
- Validate faults reach a registered fallback instead of the console.
- Validate the context handed to commands reacts to cancellation and SIGINT.

Conventions
- Test method names follow CamelCase per project convention.
- Console output is captured so the test run stays quiet.
"""

from __future__ import annotations

import os
import signal
import sys
import threading
import unittest
from unittest import TestCase

from argtree import (
    Command,
    Context,
    DuplicatedSubcommandWarning,
    FaultCode,
    InvalidArgumentsError,
    MissingSubcommandError,
    NoOp,
    Subcommands,
    URLValue,
    UnknownSubcommandError,
    faults,
    invoke,
)


def quietly(command, prompt, **options):
    with faults.console.capture():
        return invoke(command, prompt, **options)


class Recorder(Command):
    """record what the dispatcher handed over"""

    def __init__(self, name, /, **options):
        super().__init__(name, **options)
        self.calls = []
        self.context = None

    def define(self, flags):
        self.source = flags.var(URLValue(), "source", "where to read")

    def unpack_args(self):
        self.calls.append("unpack")

    def has_invalid_flags(self):
        self.calls.append("validate")
        return False

    def set_args(self, tokens):
        self.calls.append(("args", list(tokens)))

    def execute(self, context):
        self.calls.append("execute")
        self.context = context
        return 0


class Waiter(Command):
    """block until the context is done"""

    def __init__(self, name, /):
        super().__init__(name)
        self.started = threading.Event()
        self.error = None

    def execute(self, context):
        self.started.set()
        if not context.wait(10):
            return 2
        self.error = context.error
        return 130


class TestInvoke(TestCase):
    """Status codes along the paths of small trees."""

    def testBareNoOps(self):
        empty = NoOp("empty")
        error = NoOp("error", status=1)
        self.assertEqual(quietly(empty, ["cmd"]), 0)
        self.assertEqual(quietly(error, ["cmd"]), 1)

    def testOneLevel(self):
        root = Subcommands("root", [NoOp("empty"), NoOp("error", status=1)])
        self.assertEqual(quietly(root, ["cmd"]), 1)
        self.assertEqual(quietly(root, ["cmd", "empty"]), 0)
        self.assertEqual(quietly(root, ["cmd", "error"]), 1)

    def testNestedTree(self):
        empty = NoOp("empty")
        root = Subcommands("root", [empty, NoOp("error", status=1)])
        real = Subcommands("realroot", [root, empty])
        self.assertEqual(quietly(real, ["cmd"]), 1)
        self.assertEqual(quietly(real, ["cmd", "root"]), 1)
        self.assertEqual(quietly(real, ["cmd", "empty"]), 0)
        self.assertEqual(quietly(real, ["cmd", "root", "unknown"]), 1)
        self.assertEqual(quietly(real, ["cmd", "root", "error"]), 1)
        self.assertEqual(quietly(real, ["cmd", "root", "empty"]), 0)

    def testUnknownGrandchildDoesNotExecuteSiblings(self):
        x, y, b = NoOp("X"), NoOp("Y"), NoOp("B")
        root = Subcommands("root", [Subcommands("A", [x, y]), b])
        self.assertEqual(quietly(root, ["prog", "A", "Z"]), 1)
        self.assertEqual((x.executed, y.executed, b.executed), (0, 0, 0))

    def testDepthThree(self):
        x = NoOp("X")
        root = Subcommands("root", [Subcommands("A", [Subcommands("B", [x])])])
        self.assertEqual(quietly(root, ["prog", "A", "B", "X"]), 0)
        self.assertEqual(x.executed, 1)

    def testStatusIsPassedThroughVerbatim(self):
        root = Subcommands("root", [NoOp("odd", status=42)])
        self.assertEqual(quietly(root, ["prog", "odd"]), 42)

    def testStringPromptIsSplit(self):
        x = NoOp("X")
        root = Subcommands("root", [Subcommands("A", [x])])
        self.assertEqual(quietly(root, "prog A X"), 0)
        self.assertEqual(x.executed, 1)

    def testPromptMustHoldStrings(self):
        with self.assertRaises(TypeError):
            invoke(NoOp("x"), ["prog", 1])

    def testRootMustBeACommand(self):
        with self.assertRaises(TypeError):
            invoke(object(), ["prog"])


class TestDispatchPipeline(TestCase):
    """Order and arguments of the capability hooks."""

    def testHooksRunInOrder(self):
        leaf = Recorder("leaf")
        root = Subcommands("root", [leaf])
        self.assertEqual(quietly(root, ["prog", "leaf", "-source", "http://a.example/", "rest"]), 0)
        self.assertEqual(leaf.calls, [
            "unpack",
            "validate",
            ("args", ["leaf", "-source", "http://a.example/", "rest"]),
            "execute",
        ])
        self.assertEqual(str(leaf.source.get()), "http://a.example/")
        self.assertEqual(leaf.flags.args, ["rest"])

    def testChildReceivesScopeWithoutParentName(self):
        inner = Subcommands("inner", [NoOp("leaf")])
        root = Subcommands("root", [inner])
        self.assertEqual(quietly(root, ["prog", "inner", "leaf"]), 0)
        self.assertEqual(inner.args, ["inner", "leaf"])

    def testUnpackFailureReturnsOne(self):
        leaf = NoOp("leaf", unpack_error=InvalidArgumentsError("bad combination"))
        root = Subcommands("root", [leaf])
        self.assertEqual(quietly(root, ["prog", "leaf"]), 1)
        self.assertEqual(leaf.executed, 0)

    def testUnpackValueErrorReturnsOne(self):
        leaf = NoOp("leaf", unpack_error=ValueError("out of range"))
        root = Subcommands("root", [leaf])
        self.assertEqual(quietly(root, ["prog", "leaf"]), 1)
        self.assertEqual(leaf.executed, 0)

    def testUnexpectedUnpackErrorPropagates(self):
        leaf = NoOp("leaf", unpack_error=KeyError("boom"))
        root = Subcommands("root", [leaf])
        with self.assertRaises(KeyError):
            quietly(root, ["prog", "leaf"])

    def testInvalidFlagsReturnOne(self):
        leaf = NoOp("leaf", invalid_flags=True)
        root = Subcommands("root", [leaf])
        self.assertEqual(quietly(root, ["prog", "leaf"]), 1)
        self.assertEqual(leaf.executed, 0)

    def testInvalidFlagValueExitsProcess(self):
        root = Subcommands("root", [Recorder("leaf")])
        with self.assertRaises(SystemExit) as caught:
            quietly(root, ["prog", "leaf", "-source", "http://bad host/"])
        self.assertEqual(caught.exception.code, 2)

    def testFirstDuplicateWins(self):
        first, second = NoOp("same", status=3), NoOp("same", status=4)
        root = Subcommands("root", [first, second])
        with self.assertWarns(DuplicatedSubcommandWarning):
            status = quietly(root, ["prog", "same"])
        self.assertEqual(status, 3)
        self.assertEqual(second.executed, 0)


class TestFaultReporting(TestCase):
    """Faults surfaced by the dispatcher."""

    def testFallbackReceivesMissingSubcommand(self):
        root = Subcommands("root", [NoOp("leaf")])
        received = []
        root.fallback(received.append)
        self.assertEqual(quietly(root, ["prog"]), 1)
        self.assertEqual(len(received), 1)
        self.assertIsInstance(received[0], MissingSubcommandError)
        self.assertIs(received[0].options["tool"], root)

    def testFallbackReceivesSuggestion(self):
        root = Subcommands("root", [NoOp("status"), NoOp("stop")])
        received = []
        root.fallback(received.append)
        self.assertEqual(quietly(root, ["prog", "statsu"]), 1)
        self.assertIsInstance(received[0], UnknownSubcommandError)
        self.assertIs(received[0].options["code"], FaultCode.UNKNOWN_SUBCOMMAND)
        self.assertIn("status", received[0].options["hint"])

    def testFallbackReceivesUnpackReason(self):
        root = Subcommands("root", [NoOp("leaf", unpack_error=ValueError("needs two urls"))])
        received = []
        root.fallback(received.append)
        quietly(root, ["prog", "leaf"])
        self.assertIsInstance(received[0], InvalidArgumentsError)
        self.assertIn("needs two urls", received[0].message)

    def testFallbackCannotBeReplaced(self):
        root = Subcommands("root")
        root.fallback(print)
        with self.assertRaises(TypeError):
            root.fallback(print)

    def testUsageListsChildren(self):
        root = Subcommands("root", [NoOp("alpha"), Subcommands("beta", [NoOp("x"), NoOp("y")])])
        with faults.console.capture() as capture:
            invoke(root, ["prog"])
        output = capture.get()
        self.assertIn("alpha", output)
        self.assertIn("Not actually implemented.", output)
        self.assertIn("Subcommands: x, y", output)

    def testUnknownSubcommandIsRendered(self):
        root = Subcommands("root", [NoOp("alpha")])
        with faults.console.capture() as capture:
            invoke(root, ["prog", "alpah"])
        self.assertIn("did you mean 'alpha'?", capture.get())


class TestDescriptions(TestCase):

    def testDocstringFirstLine(self):
        self.assertEqual(Recorder("r").description(), "record what the dispatcher handed over")

    def testExplicitDescriptionWins(self):
        self.assertEqual(Subcommands("s", descr="custom").description(), "custom")

    def testUndocumentedCommand(self):
        class Bare(Command):
            def execute(self, context):
                return 0

        self.assertEqual(Bare().description(), "no description")
        self.assertEqual(Bare().name, "bare")

    def testNameFromClassName(self):
        class FetchRecords(Command):
            pass

        self.assertEqual(FetchRecords().name, "fetch-records")

    def testRenderingFlagsAreInherited(self):
        leaf = NoOp("leaf")
        Subcommands("root", [leaf], colorful=True, fancy=True).setup()
        self.assertTrue(leaf.colorful)
        self.assertTrue(leaf.fancy)
        self.assertTrue(leaf.flags.colorful)


class TestCancellation(TestCase):
    """Cooperative cancellation of the executing command."""

    def testContextIsDoneAfterInvoke(self):
        leaf = Recorder("leaf")
        quietly(Subcommands("root", [leaf]), ["prog", "leaf"])
        self.assertTrue(leaf.context.done)

    def testExternalCancellationReachesCommand(self):
        parent = Context()
        waiter = Waiter("wait")
        timer = threading.Timer(0.05, parent.cancel, args=(RuntimeError("stop"),))
        timer.start()
        try:
            status = quietly(Subcommands("root", [waiter]), ["prog", "wait"], context=parent)
        finally:
            timer.join()
        self.assertEqual(status, 130)
        self.assertEqual(str(waiter.error), "stop")

    def testListenerThreadDoesNotOutliveInvoke(self):
        quietly(NoOp("x"), ["prog"])
        self.assertFalse(any(thread.name == "argtree-interrupt" for thread in threading.enumerate()))

    @unittest.skipIf(sys.platform == "win32", "SIGINT delivery to self is POSIX-only")
    def testInterruptCancelsContext(self):
        waiter = Waiter("wait")

        def interrupt():
            waiter.started.wait(5)
            os.kill(os.getpid(), signal.SIGINT)

        previous = signal.getsignal(signal.SIGINT)
        sender = threading.Thread(target=interrupt)
        sender.start()
        try:
            status = quietly(Subcommands("root", [waiter]), ["prog", "wait"])
        finally:
            sender.join()
        self.assertEqual(status, 130)
        self.assertIs(signal.getsignal(signal.SIGINT), previous)


if __name__ == "__main__":
    unittest.main()
