"""Tests for scope resolution and scope-aware renaming."""

from jsxdoctor.syntax.nodes import FunctionDeclaration, Identifier, find_all
from jsxdoctor.syntax.parser import SourceParser
from jsxdoctor.syntax.scope import Resolver, ScopeKind


def _resolve(source: str, path: str = "Component.jsx"):
    tree = SourceParser().parse(source, path)
    return tree, Resolver().resolve(tree)


def _binding(table, name):
    matches = [binding for binding in table.bindings() if binding.name == name]
    assert len(matches) == 1, f"expected one binding named {name}, got {len(matches)}"
    return matches[0]


class TestResolver:
    def test_function_and_references(self):
        source = (
            "function myComponent() {\n"
            "  return <div />;\n"
            "}\n"
            "const el = myComponent();\n"
            "export default myComponent;\n"
        )
        _, table = _resolve(source)
        binding = _binding(table, "myComponent")

        assert binding.kind == "function"
        assert binding.scope is table.root
        assert [ref.line for ref in binding.references] == [4, 5]

    def test_parameters_bind_in_function_scope(self):
        _, table = _resolve("const Row = ({ item }, index) => <li>{item}{index}</li>;\n")
        item = _binding(table, "item")
        index = _binding(table, "index")

        assert item.kind == "param"
        assert item.scope.kind == ScopeKind.FUNCTION
        assert index.scope is item.scope
        assert len(item.references) == 1
        assert len(index.references) == 1

    def test_shadowing_creates_new_binding(self):
        source = (
            "const value = 1;\n"
            "function Show() {\n"
            "  const value = 2;\n"
            "  return <p>{value}</p>;\n"
            "}\n"
            "console.log(value);\n"
        )
        _, table = _resolve(source)
        bindings = [binding for binding in table.bindings() if binding.name == "value"]

        assert len(bindings) == 2
        outer = next(b for b in bindings if b.scope is table.root)
        inner = next(b for b in bindings if b.scope is not table.root)
        assert [ref.line for ref in outer.references] == [6]
        assert [ref.line for ref in inner.references] == [4]

    def test_var_hoists_to_function_scope(self):
        source = (
            "function f(flag) {\n"
            "  if (flag) {\n"
            "    var hoisted = 1;\n"
            "    let local = 2;\n"
            "  }\n"
            "  return hoisted;\n"
            "}\n"
        )
        _, table = _resolve(source)
        hoisted = _binding(table, "hoisted")
        local = _binding(table, "local")

        assert hoisted.scope.kind == ScopeKind.FUNCTION
        assert local.scope.kind == ScopeKind.BLOCK
        assert len(hoisted.references) == 1

    def test_component_tags_are_references(self):
        source = (
            "import Button from './Button';\n"
            "const App = () => <Button><span /></Button>;\n"
        )
        _, table = _resolve(source)
        button = _binding(table, "Button")

        assert button.kind == "import"
        assert len(button.references) == 2

    def test_unresolved_globals(self):
        _, table = _resolve("const App = () => <p>{window.title}</p>;\n")

        assert [identifier.name for identifier in table.unresolved] == ["window"]

    def test_catch_and_for_of_bindings(self):
        source = (
            "function f(items) {\n"
            "  for (const item of items) { use(item); }\n"
            "  try { run(); } catch (err) { report(err); }\n"
            "}\n"
        )
        _, table = _resolve(source)

        assert _binding(table, "item").kind == "const"
        assert len(_binding(table, "item").references) == 1
        assert _binding(table, "err").kind == "catch"
        assert len(_binding(table, "err").references) == 1


class TestRename:
    def test_rename_updates_declaration_and_references(self):
        source = (
            "function myComponent() {\n"
            "  return <div />;\n"
            "}\n"
            "const el = myComponent();\n"
        )
        tree, table = _resolve(source)
        binding = _binding(table, "myComponent")

        assert table.rename_conflict(binding, "MyComponent") is None
        touched = table.rename(binding, "MyComponent")

        assert touched == 1
        declaration = find_all(tree.root, FunctionDeclaration)[0].name
        assert declaration.name == "MyComponent"
        assert all(ref.name == "MyComponent" for ref in binding.references)
        assert "myComponent" not in table.root.bindings
        assert table.root.bindings["MyComponent"] is binding

    def test_conflict_in_same_scope(self):
        source = (
            "const MyComponent = 1;\n"
            "function myComponent() { return <div />; }\n"
        )
        _, table = _resolve(source)

        reason = table.rename_conflict(_binding(table, "myComponent"), "MyComponent")
        assert reason is not None
        assert "same scope" in reason

    def test_conflict_when_shadowed_at_reference(self):
        source = (
            "function myComponent() { return <div />; }\n"
            "function Page() {\n"
            "  const MyComponent = null;\n"
            "  return myComponent();\n"
            "}\n"
        )
        _, table = _resolve(source)

        assert table.rename_conflict(_binding(table, "myComponent"), "MyComponent") is not None

    def test_conflict_when_capturing_a_global(self):
        source = (
            "function Page() {\n"
            "  function helper() { return <div />; }\n"
            "  return Helper;\n"
            "}\n"
        )
        _, table = _resolve(source)

        reason = table.rename_conflict(_binding(table, "helper"), "Helper")
        assert reason is not None
        assert "global" in reason

    def test_inner_binding_of_new_name_is_not_a_conflict(self):
        source = (
            "function myComponent() { return <div />; }\n"
            "function Other() {\n"
            "  const MyComponent = 1;\n"
            "  return MyComponent;\n"
            "}\n"
        )
        _, table = _resolve(source)

        assert table.rename_conflict(_binding(table, "myComponent"), "MyComponent") is None

    def test_binding_for_declaration_and_reference(self):
        tree, table = _resolve("const a = 1;\nconst b = a;\n")
        identifiers = [node for node in find_all(tree.root, Identifier) if node.name == "a"]

        assert len(identifiers) == 2
        assert table.binding_for(identifiers[0]) is table.binding_for(identifiers[1])
        assert table.is_declaration(identifiers[0])
        assert not table.is_declaration(identifiers[1])
