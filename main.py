import time

from rich.pretty import pprint

from argtree import *

__prog__ = "registry"
__docs__ = {
    FaultCode.MALFORMED_URL: "urls look like scheme://host/path",
}


class Show(Command):
    "print one record"

    def define(self, flags):
        self.record = flags.var(UUIDValue(), "id", "record identifier")
        self.source = flags.var(URLValue(), "source", "where the record lives")

    def execute(self, context):
        pprint({"id": self.record.get(), "source": str(self.source.get())})
        return 0


class Mirror(Command):
    "copy records to several destinations"

    def define(self, flags):
        self.records = flags.var(ListValue(UUIDSlice()), "ids", "comma separated record identifiers")
        self.targets = flags.var(ListValue(URLSlice(), ";"), "to", "semicolon separated destination urls")
        self.tags = flags.var(ListValue(), "tags", "comma separated tags")
        self.delay = flags.integer("delay", 0, "seconds to wait per destination")

    def unpack_args(self):
        if not self.targets.get():
            raise InvalidArgumentsError("at least one destination is required")

    def has_invalid_flags(self):
        return self.delay.value < 0

    def execute(self, context):
        for target in self.targets.get():
            if context.wait(self.delay.value):
                return 130
            pprint({"mirror": [str(record) for record in self.records.get()], "to": str(target), "tags": self.tags.get()})
        return 0


class Sleep(Command):
    "wait until interrupted"

    def execute(self, context):
        started = time.monotonic()
        context.wait()
        pprint({"slept": round(time.monotonic() - started, 2), "reason": repr(context.error)})
        return 130


root = Subcommands("registry", [
    Subcommands("records", [Show(), Mirror()]),
    Sleep(),
    NoOp("noop"),
], colorful=True, fancy=True)


if __name__ == '__main__':
    raise SystemExit(invoke(root))
