from api_param_resolver.binding.routing import Placeholder, has_placeholder, iter_placeholders, rewrite_template


class TestHasPlaceholder:
    def test_plain_placeholder(self):
        assert has_placeholder("/users/{id}/orders", "id") is True

    def test_constrained_placeholder(self):
        assert has_placeholder("/users/{id:int}", "id") is True

    def test_case_insensitive(self):
        assert has_placeholder("/users/{UserId}", "userid") is True
        assert has_placeholder("/users/{userid}", "UserId") is True

    def test_no_partial_match(self):
        assert has_placeholder("/users/{userId}", "user") is False
        assert has_placeholder("/users/id", "id") is False


class TestIterPlaceholders:
    def test_in_template_order(self):
        found = list(iter_placeholders("/users/{userId}/orders/{orderId:int}"))
        assert found == [Placeholder("userId", None), Placeholder("orderId", "int")]

    def test_optional_marker_trimmed(self):
        assert list(iter_placeholders("/items/{page?}")) == [Placeholder("page")]

    def test_restartable(self):
        template = "/a/{x}/b/{y}"
        assert list(iter_placeholders(template)) == list(iter_placeholders(template))

    def test_no_placeholders(self):
        assert list(iter_placeholders("/search")) == []

    def test_escaped_braces_in_constraint(self):
        found = list(iter_placeholders(r"/items/{id:regex(^\d{{3}}$)}/{slug}"))
        assert found == [Placeholder("id", r"regex(^\d{{3}}$)"), Placeholder("slug")]

    def test_unbalanced_braces_tolerated(self):
        assert list(iter_placeholders("/users/{id")) == []
        assert [p.name for p in iter_placeholders("/users/{broken/{id}")] == ["id"]


class TestRewriteTemplate:
    def test_keeps_matching_and_drops_others(self):
        result = rewrite_template("/users/{id:int}/orders/{orderId}", lambda name: name == "id")
        assert result == "/users/{id}/orders"

    def test_trims_trailing_separator(self):
        assert rewrite_template("/items/{id}", lambda name: False) == "/items"

    def test_escaped_brace_constraint_rewritten(self):
        result = rewrite_template(r"/items/{id:regex(^\d{{3}}$)}", lambda name: name == "id")
        assert result == "/items/{id}"

    def test_idempotent(self):
        keep = lambda name: name.lower() == "id"
        once = rewrite_template("/users/{Id:int}/{other}/", keep)
        assert rewrite_template(once, keep) == once
        assert once == "/users/{Id}"
