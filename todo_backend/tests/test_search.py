from todo_assistant.search import (
    Ambiguous,
    NotFound,
    Resolved,
    SearchResolver,
    classify,
    match_description,
    match_smart,
    match_title,
    tokenize,
)


def titles(todos):
    return [t["title"] for t in todos]


class TestTokenize:
    def test_splits_on_any_whitespace_and_lowercases(self):
        assert tokenize("  Buy  Milk\tNow ") == ["buy", "milk", "now"]

    def test_blank_query_has_no_tokens(self):
        assert tokenize("   ") == []


class TestMatchTitle:
    def test_exact_match_short_circuits_substring_tier(self, todo_factory):
        todos = [todo_factory("Call"), todo_factory("Call dentist"), todo_factory("Call plumber")]
        assert titles(match_title("Call", todos)) == ["Call"]

    def test_exact_tier_is_case_sensitive(self, todo_factory):
        todos = [todo_factory("Call Mom"), todo_factory("call mom later")]
        # "call mom" is not an exact title, so the substring tier returns both
        assert titles(match_title("call mom", todos)) == ["Call Mom", "call mom later"]

    def test_substring_tier_keeps_store_order(self, todo_factory):
        todos = [todo_factory("Fix truck"), todo_factory("Wash car"), todo_factory("Sell truck parts")]
        assert titles(match_title("truck", todos)) == ["Fix truck", "Sell truck parts"]

    def test_token_tier_unions_any_word(self, todo_factory):
        todos = [todo_factory("Buy milk"), todo_factory("Walk dog"), todo_factory("Read book")]
        assert titles(match_title("milk dog", todos)) == ["Buy milk", "Walk dog"]

    def test_falls_through_all_tiers_to_empty(self, todo_factory):
        todos = [todo_factory("Buy milk"), todo_factory("Walk dog")]
        assert match_title("quantum physics", todos) == []

    def test_blank_query_matches_nothing(self, todo_factory):
        assert match_title("  ", [todo_factory("Buy milk")]) == []


class TestMatchDescription:
    def test_phrase_in_description_first(self, todo_factory):
        todos = [
            todo_factory("Groceries", description="milk and eggs"),
            todo_factory("Milk run", description="nothing here"),
        ]
        assert titles(match_description("milk and", todos)) == ["Groceries"]

    def test_falls_back_to_words_in_title_or_description(self, todo_factory):
        todos = [
            todo_factory("Milk run", description="corner shop"),
            todo_factory("Bake", description="needs eggs"),
            todo_factory("Read", description="novel"),
        ]
        assert titles(match_description("milk eggs please", todos)) == ["Milk run", "Bake"]


class TestMatchSmart:
    def test_title_and_description_matches_are_each_returned_once(self, todo_factory):
        todos = [
            todo_factory("Buy urgent supplies", description="urgent urgent"),
            todo_factory("Pay rent", description="this is urgent"),
            todo_factory("Walk dog", description="evening"),
        ]
        found = match_smart("urgent", todos)
        assert titles(found) == ["Buy urgent supplies", "Pay rent"]
        assert len({t["id"] for t in found}) == 2

    def test_orders_by_title_ascending(self, todo_factory):
        todos = [todo_factory("Call plumber"), todo_factory("Call dentist"), todo_factory("Call bank")]
        assert titles(match_smart("Call", todos)) == ["Call bank", "Call dentist", "Call plumber"]

    def test_matches_category_display_name(self, todo_factory):
        categories = [{"id": "health", "name": "Health", "color": "#EF4444"}]
        todos = [todo_factory("Run 5k", category="health"), todo_factory("Taxes", category="work")]
        assert titles(match_smart("health", todos, categories)) == ["Run 5k"]

    def test_dangling_category_does_not_break_search(self, todo_factory):
        todos = [todo_factory("Run 5k", category="missing")]
        assert match_smart("health", todos, []) == []

    def test_blank_query_matches_nothing(self, todo_factory):
        assert match_smart("", [todo_factory("Anything")]) == []


class TestClassify:
    def test_zero_one_many(self, todo_factory):
        a, b = todo_factory("A"), todo_factory("B")
        assert classify("x", []) == NotFound("x")
        assert classify("x", [a]) == Resolved(a)
        resolution = classify("x", [a, b])
        assert isinstance(resolution, Ambiguous)
        assert resolution.candidates == (a, b)


class TestSearchResolver:
    def test_uses_repository_snapshot(self, repo, dispatcher):
        dispatcher.create_by_fields("Fix truck")
        dispatcher.create_by_fields("Wash car", description="truck wash too")
        resolver = SearchResolver(repo)

        assert titles(resolver.resolve_by_title("truck")) == ["Fix truck"]
        assert titles(resolver.resolve_by_description("truck wash")) == ["Wash car"]
        assert titles(resolver.smart_search("truck")) == ["Fix truck", "Wash car"]
        assert isinstance(resolver.resolve_target("truck"), Ambiguous)
        assert isinstance(resolver.resolve_target("Fix"), Resolved)
        assert isinstance(resolver.resolve_target("boat"), NotFound)

    def test_personal_category_name_matches_by_smart_search(self, repo, dispatcher):
        dispatcher.create_by_fields("Fix truck")
        resolver = SearchResolver(repo)
        assert titles(resolver.smart_search("Personal")) == ["Fix truck"]
