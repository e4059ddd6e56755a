"""Parsing of raw query parameters against an allow-list."""

from unittest import mock

from django.db.models import Q
from django.http import QueryDict
from django.test import SimpleTestCase, override_settings

from querying.config import AllowedFilter, FilterKind, QueryConfig
from querying.parser import QuerySpec, parse_query, query_params_to_dict


def _always(value):
    return Q()


CONFIG = QueryConfig(
    filters={
        "name": AllowedFilter.partial("name"),
        "status": AllowedFilter.exact("status"),
        "active": AllowedFilter.scope(_always),
    },
    sorts={"name": "name", "created_at": "created_at", "author": "user__name"},
    includes={"roles", "roles.permissions"},
)


@override_settings(QUERY_DEFAULT_PAGE_SIZE=15, QUERY_MAX_PAGE_SIZE=100)
class ParseQueryTests(SimpleTestCase):
    def parse(self, query_string, config=CONFIG) -> QuerySpec:
        return parse_query(query_params_to_dict(QueryDict(query_string)), config)

    def test_empty_query_uses_defaults(self):
        spec = self.parse("")

        self.assertEqual(spec.filters, ())
        self.assertEqual(spec.sorts, ())
        self.assertEqual(spec.includes, frozenset())
        self.assertEqual((spec.page_size, spec.page_number), (15, 1))

    def test_filters_keep_kind_and_drop_unknown_keys(self):
        spec = self.parse("filter[name]=jo&filter[password_hash]=x&filter[status]=draft&filter[active]=1")

        self.assertEqual([(c.key, c.kind) for c in spec.filters], [
            ("name", FilterKind.PARTIAL),
            ("status", FilterKind.EXACT),
            ("active", FilterKind.SCOPE),
        ])

    def test_blank_filter_values_are_skipped(self):
        spec = self.parse("filter[name]=%20%20")

        self.assertEqual(spec.filters, ())

    def test_nested_mapping_is_accepted(self):
        spec = parse_query({"filter": {"name": "ann"}, "page": {"size": "5", "number": "2"}}, CONFIG)

        self.assertEqual(spec.filters[0].value, "ann")
        self.assertEqual((spec.page_size, spec.page_number), (5, 2))

    def test_sorts_keep_order_direction_and_first_occurrence(self):
        spec = self.parse("sort=-created_at,name,unknown,created_at")

        self.assertEqual([(s.key, s.descending) for s in spec.sorts], [("created_at", True), ("name", False)])

    def test_includes_require_every_prefix(self):
        spec = self.parse("include=roles.permissions,posts,roles")

        self.assertEqual(spec.includes, frozenset({"roles", "roles.permissions"}))

        only_child = QueryConfig(includes={"roles.permissions"})
        self.assertEqual(self.parse("include=roles.permissions", only_child).includes, frozenset())

    def test_default_includes_are_always_present(self):
        config = QueryConfig(includes={"user"}, default_includes=("user",))

        self.assertEqual(self.parse("", config).includes, frozenset({"user"}))

    def test_bracket_pagination(self):
        spec = self.parse("page[size]=2&page[number]=3")

        self.assertEqual((spec.page_size, spec.page_number), (2, 3))

    def test_flat_pagination(self):
        spec = self.parse("per_page=7&page=4")

        self.assertEqual((spec.page_size, spec.page_number), (7, 4))

    def test_malformed_pagination_falls_back(self):
        for query in ("page[size]=abc&page[number]=-1", "page[size]=0&page[number]=zero", "per_page=1.5"):
            with self.subTest(query=query):
                spec = self.parse(query)
                self.assertEqual((spec.page_size, spec.page_number), (15, 1))

    def test_page_size_is_clamped(self):
        self.assertEqual(self.parse("page[size]=1000").page_size, 100)

    def test_config_page_limits_override_settings(self):
        config = QueryConfig(default_page_size=5, max_page_size=10)

        self.assertEqual(self.parse("", config).page_size, 5)
        self.assertEqual(self.parse("page[size]=50", config).page_size, 10)

    def test_repeated_keys_use_last_value(self):
        spec = self.parse("sort=name&sort=-name")

        self.assertEqual([(s.key, s.descending) for s in spec.sorts], [("name", True)])


class QueryConfigCheckTests(SimpleTestCase):
    def test_registered_configs_are_consistent(self):
        from querying.checks import query_configs_are_consistent

        self.assertEqual(query_configs_are_consistent(None), [])

    def test_bad_include_is_reported(self):
        from authentication.views import UserViewSet
        from querying.checks import query_configs_are_consistent

        broken = {"list": QueryConfig(includes={"roles.permissions", "posts.missing"})}
        with mock.patch.object(UserViewSet, "query_configs", broken):
            ids = sorted({error.id for error in query_configs_are_consistent(None)})

        self.assertEqual(ids, ["querying.E001", "querying.E002"])
