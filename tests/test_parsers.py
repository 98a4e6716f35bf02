"""Test flattening JSON from the ORCID API into tables."""

import unittest

from orcid_frames.models import (
    Affiliation,
    Funding,
    PeerReview,
    Person,
    ResearchResource,
    Work,
    get_columns,
)
from orcid_frames.parsers import (
    FLATTENERS,
    MODELS,
    flatten,
    get_empty_frame,
    parse_activities,
    parse_address,
    parse_affiliations,
    parse_bio,
    parse_educations,
    parse_email,
    parse_employments,
    parse_external_identifiers,
    parse_funding,
    parse_keywords,
    parse_other_names,
    parse_peer_reviews,
    parse_person,
    parse_research_resources,
    parse_researcher_urls,
    parse_works,
)

ORCID = "0000-0002-1825-0097"

EMPLOYMENT_SUMMARY = {
    "put-code": 12345,
    "department-name": "Computer Science",
    "role-title": "Professor",
    "start-date": {"year": {"value": "2020"}, "month": {"value": "01"}, "day": {"value": "01"}},
    "end-date": None,
    "organization": {
        "name": "Test University",
        "address": {"city": "TestCity", "region": "TestRegion", "country": "US"},
    },
}

EMPLOYMENTS = {
    "affiliation-group": [
        {"summaries": [{"employment-summary": EMPLOYMENT_SUMMARY}]},
    ]
}


def _work_summary(put_code: int, title: str, external_ids=None) -> dict:
    return {
        "put-code": put_code,
        "title": {"title": {"value": title}},
        "type": "journal-article",
        "publication-date": {"year": {"value": "2019"}, "month": {"value": "6"}, "day": None},
        "journal-title": {"value": "Journal of Psychoceramics"},
        "url": {"value": "https://example.org/paper"},
        "external-ids": {"external-id": external_ids or []},
    }


class TestEmptySchemas(unittest.TestCase):
    """Test that every flattener keeps its columns when there's nothing to flatten."""

    def test_empty(self) -> None:
        """Test absent, empty, and null top-level collections."""
        for kind, flattener in FLATTENERS.items():
            if kind in {"person", "biography"}:
                continue
            columns = get_columns(MODELS[kind])
            for data in [None, {}, [], "garbage", {"affiliation-group": None, "group": None}]:
                with self.subTest(kind=kind, data=data):
                    frame = flattener(data, ORCID)
                    self.assertEqual(0, len(frame.index))
                    self.assertEqual(columns, frame.columns.tolist())
            for key in ["affiliation-group", "group", "keyword", "email", "address"]:
                with self.subTest(kind=kind, key=key):
                    frame = flattener({key: []}, ORCID)
                    self.assertEqual(0, len(frame.index))
                    self.assertEqual(columns, frame.columns.tolist())

    def test_missing_is_none(self) -> None:
        """Test that a missing value is None even when other rows have a value."""
        data = {"address": [{"put-code": 1, "country": {"value": "US"}}, {"put-code": 2}]}
        frame = parse_address(data, ORCID)
        self.assertIsNone(frame["country"].tolist()[1])
        self.assertIsNone(frame.iloc[1]["country"])

    def test_dtypes(self) -> None:
        """Test that full and empty tables have the same object dtypes."""
        full = parse_employments(EMPLOYMENTS, ORCID)
        empty = get_empty_frame("employments")
        self.assertEqual(empty.dtypes.tolist(), full.dtypes.tolist())
        self.assertTrue(all(dtype == object for dtype in full.dtypes))

    def test_empty_frame(self) -> None:
        """Test getting empty tables directly."""
        for kind, model in MODELS.items():
            with self.subTest(kind=kind):
                frame = get_empty_frame(kind)
                self.assertTrue(frame.empty)
                self.assertEqual(get_columns(model), frame.columns.tolist())


class TestAffiliations(unittest.TestCase):
    """Test flattening affiliations."""

    def test_employment(self) -> None:
        """Test a full employment."""
        frame = parse_employments(EMPLOYMENTS, ORCID)
        self.assertEqual(get_columns(Affiliation), frame.columns.tolist())
        self.assertEqual(1, len(frame.index))
        row = frame.iloc[0]
        self.assertEqual(ORCID, row["orcid"])
        self.assertEqual("12345", row["put_code"])
        self.assertEqual("Test University", row["organization"])
        self.assertEqual("Computer Science", row["department"])
        self.assertEqual("Professor", row["role"])
        self.assertEqual("2020-01-01", row["start_date"])
        self.assertIsNone(row["end_date"])
        self.assertEqual("TestCity", row["city"])
        self.assertEqual("TestRegion", row["region"])
        self.assertEqual("US", row["country"])

    def test_wrong_summary_key(self) -> None:
        """Test that a section flattener only uses its own summary key."""
        self.assertTrue(parse_educations(EMPLOYMENTS, ORCID).empty)

    def test_sparse(self) -> None:
        """Test a summary with almost nothing in it."""
        data = {"affiliation-group": [{"summaries": [{"education-summary": {"put-code": 1}}]}]}
        frame = parse_educations(data, ORCID)
        self.assertEqual(1, len(frame.index))
        row = frame.iloc[0]
        self.assertEqual("1", row["put_code"])
        for column in ["organization", "department", "role", "start_date", "city", "country"]:
            self.assertIsNone(row[column], msg=column)

    def test_candidate_keys(self) -> None:
        """Test that the first present summary key wins, and items with none are skipped."""
        data = {
            "affiliation-group": [
                {
                    "summaries": [
                        {
                            "membership-summary": {"put-code": 2},
                            "distinction-summary": {"put-code": 1},
                        },
                        {"service-summary": {"put-code": 3}},
                        {"unknown-summary": {"put-code": 4}},
                        {"service-summary": None},
                        None,
                    ]
                },
                {"summaries": None},
                {},
            ]
        }
        frame = parse_affiliations(data, ORCID)
        self.assertEqual(["1", "3"], frame["put_code"].tolist())

    def test_several_groups(self) -> None:
        """Test that all summaries in all groups are used, in order."""
        data = {
            "affiliation-group": [
                {"summaries": [{"invited-position-summary": {"put-code": i}} for i in (1, 2)]},
                {"summaries": [{"qualification-summary": {"put-code": 3}}]},
            ]
        }
        frame = parse_affiliations(data, ORCID)
        self.assertEqual(["1", "2", "3"], frame["put_code"].tolist())

    def test_malformed_field(self) -> None:
        """Test that a field with an unexpected shape becomes missing rather than raising."""
        summary = dict(EMPLOYMENT_SUMMARY, **{"role-title": {"unexpected": "shape"}})
        data = {"affiliation-group": [{"summaries": [{"employment-summary": summary}]}]}
        frame = parse_employments(data, ORCID)
        self.assertIsNone(frame.iloc[0]["role"])
        self.assertEqual("Test University", frame.iloc[0]["organization"])


class TestWorks(unittest.TestCase):
    """Test flattening works."""

    def test_first_summary_wins(self) -> None:
        """Test that only the first summary of a group is used."""
        data = {
            "group": [
                {
                    "work-summary": [
                        _work_summary(1, "From Crossref"),
                        _work_summary(2, "From a repository"),
                    ]
                }
            ]
        }
        frame = parse_works(data, ORCID)
        self.assertEqual(get_columns(Work), frame.columns.tolist())
        self.assertEqual(1, len(frame.index))
        row = frame.iloc[0]
        self.assertEqual("1", row["put_code"])
        self.assertEqual("From Crossref", row["title"])
        self.assertEqual("journal-article", row["type"])
        self.assertEqual("2019-06", row["publication_date"])
        self.assertEqual("Journal of Psychoceramics", row["journal"])
        self.assertEqual("https://example.org/paper", row["url"])

    def test_doi(self) -> None:
        """Test that the first DOI is extracted from among other identifiers."""
        external_ids = [
            {"external-id-type": "pmid", "external-id-value": "36151740"},
            {"external-id-type": "doi", "external-id-value": "10.1234/first"},
            {"external-id-type": "doi", "external-id-value": "10.1234/second"},
            {"external-id-type": "eid", "external-id-value": "2-s2.0-1"},
        ]
        data = {"group": [{"work-summary": [_work_summary(1, "Paper", external_ids)]}]}
        self.assertEqual("10.1234/first", parse_works(data, ORCID).iloc[0]["doi"])

    def test_no_doi(self) -> None:
        """Test that the DOI is missing without a DOI identifier."""
        external_ids = [{"external-id-type": "pmid", "external-id-value": "36151740"}]
        data = {
            "group": [
                {"work-summary": [_work_summary(1, "Paper", external_ids)]},
                {"work-summary": [dict(_work_summary(2, "Paper"), **{"external-ids": None})]},
            ]
        }
        frame = parse_works(data, ORCID)
        self.assertEqual(2, len(frame.index))
        self.assertIsNone(frame.iloc[0]["doi"])
        self.assertIsNone(frame.iloc[1]["doi"])

    def test_skip_malformed(self) -> None:
        """Test that empty or malformed groups are skipped."""
        data = {
            "group": [
                {"work-summary": []},
                {"work-summary": None},
                {"work-summary": ["not a summary"]},
                {"work-summary": [_work_summary(3, "Good")]},
            ]
        }
        frame = parse_works(data, ORCID)
        self.assertEqual(["3"], frame["put_code"].tolist())


class TestFunding(unittest.TestCase):
    """Test flattening funding."""

    def test_amount(self) -> None:
        """Test funding with and without an amount."""
        base = {
            "title": {"title": {"value": "A grant"}},
            "type": "grant",
            "organization": {"name": "Funder"},
            "start-date": {"year": {"value": "2018"}},
            "end-date": {"year": {"value": "2021"}, "month": {"value": "12"}},
        }
        data = {
            "group": [
                {
                    "funding-summary": [
                        dict(base, **{"put-code": 1, "amount": {"value": "50000", "currency-code": "EUR"}}),
                        dict(base, **{"put-code": 2}),
                        dict(base, **{"put-code": 3, "amount": "lots"}),
                    ]
                }
            ]
        }
        frame = parse_funding(data, ORCID)
        self.assertEqual(get_columns(Funding), frame.columns.tolist())
        self.assertEqual(3, len(frame.index))
        first, second, third = (frame.iloc[i] for i in range(3))
        self.assertEqual("A grant", first["title"])
        self.assertEqual("grant", first["type"])
        self.assertEqual("Funder", first["organization"])
        self.assertEqual("2018", first["start_date"])
        self.assertEqual("2021-12", first["end_date"])
        self.assertEqual("50000", first["amount"])
        self.assertEqual("EUR", first["currency"])
        self.assertIsNone(second["amount"])
        self.assertIsNone(second["currency"])
        self.assertIsNone(third["amount"])


class TestPeerReviews(unittest.TestCase):
    """Test flattening peer reviews."""

    def test_nested_and_flat(self) -> None:
        """Test summaries directly in a group and nested in peer review groups."""
        summary = {
            "reviewer-role": "reviewer",
            "review-type": "review",
            "completion-date": {"year": {"value": "2022"}, "month": {"value": "2"}},
            "convening-organization": {"name": "A Publisher"},
        }
        data = {
            "group": [
                {"peer-review-summary": [dict(summary, **{"put-code": 1})]},
                {
                    "peer-review-group": [
                        {"peer-review-summary": [dict(summary, **{"put-code": 2})]},
                        {"peer-review-summary": [dict(summary, **{"put-code": 3})]},
                    ]
                },
            ]
        }
        frame = parse_peer_reviews(data, ORCID)
        self.assertEqual(get_columns(PeerReview), frame.columns.tolist())
        self.assertEqual(["1", "2", "3"], frame["put_code"].tolist())
        row = frame.iloc[0]
        self.assertEqual("reviewer", row["reviewer_role"])
        self.assertEqual("review", row["review_type"])
        self.assertEqual("2022-02", row["completion_date"])
        self.assertEqual("A Publisher", row["organization"])


class TestResearchResources(unittest.TestCase):
    """Test flattening research resources."""

    def test_dates(self) -> None:
        """Test dates on the summary and nested in the proposal."""
        data = {
            "group": [
                {
                    "research-resource-summary": [
                        {
                            "put-code": 1,
                            "proposal": {
                                "title": {"title": {"value": "Beam time"}},
                                "start-date": {"year": {"value": "2017"}},
                                "end-date": {"year": {"value": "2018"}},
                            },
                        },
                        {
                            "put-code": 2,
                            "start-date": {"year": {"value": "2019"}},
                            "end-date": None,
                        },
                    ]
                }
            ]
        }
        frame = parse_research_resources(data, ORCID)
        self.assertEqual(get_columns(ResearchResource), frame.columns.tolist())
        self.assertEqual("Beam time", frame.iloc[0]["proposal_title"])
        self.assertEqual("2017", frame.iloc[0]["start_date"])
        self.assertEqual("2018", frame.iloc[0]["end_date"])
        self.assertIsNone(frame.iloc[1]["proposal_title"])
        self.assertEqual("2019", frame.iloc[1]["start_date"])
        self.assertIsNone(frame.iloc[1]["end_date"])


class TestPerson(unittest.TestCase):
    """Test flattening a person."""

    def test_full(self) -> None:
        """Test a person with everything filled in."""
        data = {
            "name": {
                "given-names": {"value": "Josiah"},
                "family-name": {"value": "Carberry"},
                "credit-name": {"value": "J. S. Carberry"},
            },
            "biography": {"content": "Psychoceramicist"},
            "keywords": {
                "keyword": [{"content": "pottery"}, {"content": None}, {"content": "cracks"}]
            },
            "researcher-urls": {
                "researcher-url": [
                    {"url": {"value": "https://example.org"}},
                    {"url": None},
                    {"url": {"value": "https://example.com"}},
                ]
            },
            "addresses": {
                "address": [{"country": {"value": "US"}}, {"country": {"value": "GB"}}]
            },
        }
        frame = parse_person(data, ORCID)
        self.assertEqual(get_columns(Person), frame.columns.tolist())
        self.assertEqual(1, len(frame.index))
        row = frame.iloc[0]
        self.assertEqual("Josiah", row["given_names"])
        self.assertEqual("Carberry", row["family_name"])
        self.assertEqual("J. S. Carberry", row["credit_name"])
        self.assertEqual("Psychoceramicist", row["biography"])
        self.assertEqual("pottery, cracks", row["keywords"])
        self.assertEqual("https://example.org, https://example.com", row["researcher_urls"])
        self.assertEqual("US", row["country"])

    def test_absent(self) -> None:
        """Test that a person always has exactly one row."""
        for data in [None, {}, {"name": None, "keywords": {"keyword": []}}]:
            with self.subTest(data=data):
                frame = parse_person(data, ORCID)
                self.assertEqual(get_columns(Person), frame.columns.tolist())
                self.assertEqual(1, len(frame.index))
                row = frame.iloc[0]
                self.assertEqual(ORCID, row["orcid"])
                for column in get_columns(Person)[1:]:
                    self.assertIsNone(row[column], msg=column)

    def test_first_address_only(self) -> None:
        """Test that only the first address is used, even if it has no country."""
        data = {"addresses": {"address": [{"country": None}, {"country": {"value": "GB"}}]}}
        self.assertIsNone(parse_person(data, ORCID).iloc[0]["country"])


class TestBiographical(unittest.TestCase):
    """Test flattening the separate biographical endpoints."""

    def test_bio(self) -> None:
        """Test the biography."""
        frame = parse_bio({"content": "Hello", "visibility": "public"}, ORCID)
        self.assertEqual(["orcid", "biography", "visibility"], frame.columns.tolist())
        self.assertEqual("Hello", frame.iloc[0]["biography"])
        self.assertEqual(1, len(parse_bio(None, ORCID).index))

    def test_keywords(self) -> None:
        """Test keywords."""
        data = {"keyword": [{"put-code": 1, "content": "pottery"}, None, {"put-code": 2}]}
        frame = parse_keywords(data, ORCID)
        self.assertEqual(["1", "2"], frame["put_code"].tolist())
        self.assertEqual("pottery", frame.iloc[0]["keyword"])
        self.assertIsNone(frame.iloc[1]["keyword"])

    def test_researcher_urls(self) -> None:
        """Test researcher URLs."""
        data = {
            "researcher-url": [
                {"put-code": 1, "url-name": "Homepage", "url": {"value": "https://example.org"}}
            ]
        }
        row = parse_researcher_urls(data, ORCID).iloc[0]
        self.assertEqual("Homepage", row["url_name"])
        self.assertEqual("https://example.org", row["url_value"])

    def test_external_identifiers(self) -> None:
        """Test external identifiers."""
        data = {
            "external-identifier": [
                {
                    "put-code": 1,
                    "external-id-type": "Scopus Author ID",
                    "external-id-value": "123",
                    "external-id-url": {"value": "https://www.scopus.com/authid/123"},
                }
            ]
        }
        row = parse_external_identifiers(data, ORCID).iloc[0]
        self.assertEqual("Scopus Author ID", row["external_id_type"])
        self.assertEqual("123", row["external_id_value"])
        self.assertEqual("https://www.scopus.com/authid/123", row["external_id_url"])

    def test_other_names(self) -> None:
        """Test other names."""
        frame = parse_other_names({"other-name": [{"put-code": 1, "content": "Joe"}]}, ORCID)
        self.assertEqual("Joe", frame.iloc[0]["other_name"])

    def test_address(self) -> None:
        """Test addresses."""
        data = {"address": [{"put-code": 1, "country": {"value": "US"}}, {"put-code": 2}]}
        frame = parse_address(data, ORCID)
        self.assertEqual(["US", None], frame["country"].tolist())

    def test_email(self) -> None:
        """Test emails."""
        data = {
            "email": [
                {"email": "a@example.org", "verified": True, "primary": True},
                {"email": "b@example.org", "verified": "yes", "primary": None},
            ]
        }
        frame = parse_email(data, ORCID)
        self.assertEqual(["orcid", "email", "verified", "primary"], frame.columns.tolist())
        self.assertEqual([True, False], frame["verified"].tolist())
        self.assertEqual([True, False], frame["primary"].tolist())


class TestDispatch(unittest.TestCase):
    """Test flattening by the kind of entity."""

    def test_flatten(self) -> None:
        """Test dispatching to a flattener."""
        frame = flatten("employments", EMPLOYMENTS, ORCID)
        self.assertEqual(1, len(frame.index))
        self.assertEqual(set(FLATTENERS), set(MODELS))

    def test_unknown(self) -> None:
        """Test an unknown kind of entity."""
        with self.assertRaises(ValueError):
            flatten("nope", {}, ORCID)

    def test_activities(self) -> None:
        """Test splitting the activities summary into tables."""
        data = {
            "employments": EMPLOYMENTS,
            "works": {"group": [{"work-summary": [_work_summary(1, "Paper")]}]},
            "fundings": None,
        }
        result = parse_activities(data, ORCID)
        self.assertEqual(
            {
                "distinctions",
                "educations",
                "employments",
                "invited_positions",
                "memberships",
                "qualifications",
                "services",
                "fundings",
                "peer_reviews",
                "research_resources",
                "works",
            },
            set(result),
        )
        self.assertEqual(1, len(result["employments"].index))
        self.assertEqual(1, len(result["works"].index))
        self.assertTrue(result["fundings"].empty)
        self.assertEqual(get_columns(Funding), result["fundings"].columns.tolist())
        self.assertEqual(get_columns(PeerReview), result["peer_reviews"].columns.tolist())
