# gowrap

`gowrap` is a library that generates decorators for Go interfaces. It reads
an interface declaration from a Go package, passes its methods to a Jinja2
template and returns the Go source that the template produces. That source
is checked, its imports are regrouped and pruned, and it is reindented.

## Installation

```
pip install .
```

Loading Go packages runs `go list`, so the `go` tool must be on `PATH`.
Resolving `file://` template paths relative to a repository runs `git`.

To run the test suite:

```
pip install ".[test]"
pytest
```

## Generating a decorator

```python
import io

from gowrap.generator import Options, new_generator

options = Options(
    interface_name="Storage",
    source_package="./store",
    output_file="store/storage_with_log.go",
    header_template="package {{ Package.name }}\n",
    body_template=open("templates/log").read(),
    vars={"DecoratorName": "StorageWithLogger"},
    local_prefix="example.com/myproject",
)
generator = new_generator(options)

out = io.StringIO()
generator.generate(out)
print(out.getvalue())
```

`new_generator` loads the source package and the package of the output
file's directory (falling back to the directory name as the package name),
finds the interface, including interfaces it embeds from the same package
or from imported ones, and parses both templates. Failures raise
`gowrap.generator.GeneratorError`; its `reason` says what went wrong, for
example `"interface type declaration not found"`, `"interface has no
methods"`, `"unexported method"` or `"embedded interface has same method"`.

`Options.funcs` is a mapping of helper functions; each is made available in
both templates as a global function and as a filter.

### Template inputs

The header template receives `SourcePackage`, `Package` (both
`gowrap.package.GoPackage` objects with `name` and `pkg_path`), `Vars` and
`Options`.

The body template receives:

- `Interface.name` – the interface name
- `Interface.type` – the interface type, qualified with its package name
  when the output goes to another package
- `Interface.methods` – a mapping of method names to
  `gowrap.types.Method` objects
- `Vars` – the values of `Options.vars`
- `Imports` – the imports of the file that declares the interface, plus the
  source package when it differs from the destination
- `Import(...)` – returns an import block that merges `Imports` with the
  paths passed to it, e.g. `{{ Import("fmt", "time") }}`

Each `Method` has `name`, `params`, `results`, `doc`, `comment`,
`returns_error` and `accepts_context`, and the helpers `declaration()`,
`signature()`, `call()`, `pass_call(prefix)`, `params_names()`,
`results_names()`, `params_struct()`, `results_struct()`, `params_map()`,
`results_map()`, `return_struct(name)`, `has_params()` and `has_results()`.
Unnamed parameters get names built from their types (`s1`, `sp1`, `m1`
and so on); a leading `Context` parameter is named `ctx` and a trailing
`error` result `err`.

### Formatting

`gowrap.generator.format_source(filename, source, local_prefix)` can be used
on its own. It raises `GeneratorError` when the source does not parse, drops
unused imports and sorts the rest into standard-library, third-party and
local groups, where `local_prefix` is a comma-separated list of import path
prefixes.

## Loading templates

```python
from gowrap.loader import Loader

loader = Loader()
body, origin = loader.load("https://example.com/templates/log")
names = loader.list()
```

`Loader.load` accepts an `http://` or `https://` URL, a `file://` path
(looked up relative to the git work tree root when it does not exist as
given) or a bare template name, which is fetched from the template
repository at its latest commit. `Loader.list` returns the names of the
templates in that repository. A non-200 answer raises
`UnexpectedStatusError`; an unknown template name raises
`TemplateNotFoundError`. Pass `client`, a callable taking a URL and
returning `(status, body)`, to use your own HTTP transport.

## Lower-level modules

- `gowrap.syntax` – a parser for the package clause, imports and type
  declarations of Go files (`parse_file`, `parse_dir`) and `format_node`
- `gowrap.printer` – `Printer`, which prints type expressions and qualifies
  source-package types, raising `UnexportedTypeError` for unexported ones
- `gowrap.package` – `load`, `package_ast` and `package_dir` for Go packages
- `gowrap.command` – `BaseCommand`, a registry (`register_command`,
  `get_command`) and `usage`, which writes a usage message listing the
  registered commands

## What this package does not do

There is no `gowrap` command-line program: no `gen` or `template` commands
and no flag parsing. The command registry starts empty. No helper filters
are predefined for templates, and no header template is supplied; pass
your own through `Options.funcs` and `Options.header_template`.