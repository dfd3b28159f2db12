from phpns.utils.names import (
    QualifiedName,
    build_fqn,
    extract_namespace,
    is_global_namespace,
    is_qualified,
    namespace_depth,
    normalize_fqn,
    short_name,
)


class TestNormalizeFqn:
    def test_strips_leading_separator(self):
        assert normalize_fqn("\\App\\Models\\User") == "App\\Models\\User"

    def test_leaves_relative_name(self):
        assert normalize_fqn("App\\Models\\User") == "App\\Models\\User"

    def test_empty(self):
        assert normalize_fqn("") == ""
        assert normalize_fqn(None) == ""


class TestExtractNamespace:
    def test_namespaced(self):
        assert extract_namespace("App\\Models\\User") == "App\\Models"

    def test_global(self):
        assert extract_namespace("User") == ""
        assert extract_namespace("\\User") == ""


class TestShortName:
    def test_namespaced(self):
        assert short_name("App\\Models\\User") == "User"

    def test_global(self):
        assert short_name("\\User") == "User"


class TestIsGlobalNamespace:
    def test_global(self):
        assert is_global_namespace("User")
        assert is_global_namespace("\\User")

    def test_namespaced(self):
        assert not is_global_namespace("App\\User")


class TestBuildFqn:
    def test_namespaced(self):
        assert build_fqn("App\\Models", "User") == "App\\Models\\User"

    def test_global(self):
        assert build_fqn("", "User") == "User"
        assert build_fqn(None, "User") == "User"

    def test_rooted_namespace(self):
        assert build_fqn("\\App", "User") == "App\\User"


class TestNamespaceDepth:
    def test_depths(self):
        assert namespace_depth("") == 0
        assert namespace_depth("App") == 1
        assert namespace_depth("App\\Models") == 2
        assert namespace_depth("\\App\\Models\\Admin") == 3


class TestIsQualified:
    def test_qualified(self):
        assert is_qualified("\\User")
        assert is_qualified("Models\\User")

    def test_unqualified(self):
        assert not is_qualified("User")


class TestQualifiedName:
    def test_parse(self):
        name = QualifiedName.parse(" \\App\\Models\\User ")
        assert name.fqn == "App\\Models\\User"
        assert name.namespace == "App\\Models"
        assert name.short_name == "User"
        assert not name.is_global
        assert name.rooted == "\\App\\Models\\User"
        assert str(name) == "App\\Models\\User"

    def test_global(self):
        name = QualifiedName.parse("Helper")
        assert name.is_global
        assert name.namespace == ""
