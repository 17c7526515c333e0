from __future__ import annotations

import pytest

from exam_harvester.engine.parser import Parser, absolute_url, clean_text
from exam_harvester.errors import ParseError

SAA_HREF = "/discussions/amazon/view/11-exam-aws-certified-solutions-architect-associate-saa-c03-topic-1-question-1/"
CLF_HREF = "/discussions/amazon/view/12-exam-aws-certified-cloud-practitioner-clf-c02-topic-1-question-7/"


def test_clean_text_collapses_blank_space_and_drops_empty_lines() -> None:
    raw = "  Which\t\tservice   fits?  \n\n   \n A.  S3 \n"
    assert clean_text(raw) == "Which service fits?\nA. S3"
    assert clean_text(None) == ""


def test_absolute_url_resolves_relative_links() -> None:
    assert absolute_url("https://exams.example/", "/a/b") == "https://exams.example/a/b"
    assert absolute_url("https://exams.example", "a/b") == "https://exams.example/a/b"
    assert absolute_url("https://exams.example", "https://cdn.example/x") == "https://cdn.example/x"


def test_page_count_from_indicator_and_fallbacks(make_listing) -> None:
    parser = Parser()
    assert parser.parse_page_count(make_listing([(SAA_HREF, "q1")], pages=12)) == 12
    assert parser.parse_page_count(make_listing([(SAA_HREF, "q1")])) == 1
    assert parser.parse_page_count("<html><body><p>Nothing here</p></body></html>") is None


def test_discussion_links_match_filter_case_insensitively(make_listing) -> None:
    html = make_listing(
        [
            (SAA_HREF, "Exam AWS Certified Solutions Architect topic 1 question 1"),
            (CLF_HREF, "Exam AWS Certified Cloud Practitioner topic 1 question 7"),
            ("/discussions/amazon/view/13/", "SAA-C03 question 9 discussion"),
            ("javascript:void(0)", "SAA-C03 broken"),
        ]
    )
    parser = Parser()
    assert parser.parse_discussion_links(html, "SAA-C03") == [SAA_HREF, "/discussions/amazon/view/13/"]
    assert parser.parse_discussion_links(html, "") == [SAA_HREF, CLF_HREF, "/discussions/amazon/view/13/"]
    assert parser.parse_discussion_links(html, "az-900") == []


def test_parse_question_extracts_every_field(make_question, base_url) -> None:
    html = make_question(
        "Exam AWS Certified Solutions Architect topic 1 question 1 discussion",
        body="Actual exam question from Amazon's SAA-C03\nA company needs   durable storage.\nAll SAA-C03 Questions",
        choices=("A.  Amazon S3", "B. Amazon EBS"),
        answer="\n  A\t",
        comments="<p>alice: S3 for sure</p>",
        images=("/assets/media/exam-media/04229/0000100001.png",),
    )
    record = Parser().parse_question(html, f"{base_url}{SAA_HREF}", base_url)

    assert record.title == "Exam AWS Certified Solutions Architect topic 1 question 1 discussion"
    assert record.choices == ("A. Amazon S3", "B. Amazon EBS")
    assert record.answer == "A"
    assert record.timestamp == "Jan 1, 2024, 10:00 a.m."
    assert record.link == f"{base_url}{SAA_HREF}"
    assert record.comments == "alice: S3 for sure"
    assert record.content.startswith("A company needs durable storage.")
    assert "Actual exam" not in record.content
    assert "All SAA-C03 Questions" not in record.content
    assert record.content.endswith(
        "![Exhibit](https://exams.example/assets/media/exam-media/04229/0000100001.png)"
    )


def test_parse_question_without_title_fails(base_url) -> None:
    with pytest.raises(ParseError):
        Parser().parse_question("<html><body><p>gone</p></body></html>", f"{base_url}/x", base_url)


def test_parse_exam_links_keeps_provider_exams_in_page_order(base_url) -> None:
    html = (
        "<html><body>"
        '<a href="/exams/amazon/">All Amazon</a>'
        '<a href="/exams/amazon/aws-certified-cloud-practitioner/">CLF</a>'
        '<a href="/exams/google/associate-cloud-engineer/">ACE</a>'
        '<a href="https://exams.example/exams/amazon/saa-c03/">SAA</a>'
        '<a href="/exams/amazon/aws-certified-cloud-practitioner/">CLF again</a>'
        "</body></html>"
    )
    assert Parser().parse_exam_links(html, "amazon", base_url) == [
        "https://exams.example/exams/amazon/aws-certified-cloud-practitioner/",
        "https://exams.example/exams/amazon/saa-c03/",
    ]
