"""
Shared fixtures: a scripted generation backend and an in-memory Supabase client.
"""

import base64
import json
import uuid
from datetime import datetime, timedelta, timezone

import pytest

from data_models import FilePayload


def make_step(title):
    return {
        "title": title,
        "content": f"{title} reasoning",
        "insights": [f"{title} insight 1", f"{title} insight 2", f"{title} insight 3"],
    }


def make_thinking():
    return {
        "resumeAnalysis": make_step("Resume"),
        "preferencesAnalysis": make_step("Preferences"),
        "intersectionAnalysis": make_step("Intersection"),
        "searchStrategy": make_step("Search Strategy"),
    }


def make_company(tier, index, **overrides):
    company = {
        "name": f"{tier} Labs {index}",
        "domain": f"{tier.lower()}-labs-{index}.com",
        "tier": tier,
        "reason": f"Strong overlap with {tier.lower()} criteria",
        "description": "Developer tooling startup",
        "location": "Remote",
        "funding": "Series A",
        "techStack": ["Python", "React"],
    }
    company.update(overrides)
    return company


def make_match_response(counts=(5, 5, 4), score=72, grade="B-", extra_companies=()):
    companies = []
    for tier, count in zip(("Reach", "Target", "Safety"), counts):
        companies.extend(make_company(tier, index) for index in range(count))
    companies.extend(extra_companies)
    return {
        "score": score,
        "grade": grade,
        "summary": "Solid engineer with a thin impact story.",
        "markdownContent": "# Overall Verdict\nGood bones, weak bullets.",
        "careerAdvice": {
            "currentLevel": "Mid-Level",
            "estimatedSalary": "$140k - $170k",
            "recommendedRoles": ["Backend Engineer", "Founding Engineer"],
            "realityCheck": "Quantify your wins before applying to Reach companies.",
            "companyMatches": companies,
        },
    }


class ScriptedBackend:
    """Returns queued texts in order; queued exceptions are raised instead."""

    def __init__(self, responses=()):
        self.responses = list(responses)
        self.requests = []

    def generate(self, request):
        self.requests.append(request)
        if not self.responses:
            raise RuntimeError("No scripted response left")
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


class FakeResponse:
    def __init__(self, data=None, count=None):
        self.data = data
        self.count = count


class FakeQuery:
    """Mimics the chained PostgREST query builder used by supabase-py."""

    def __init__(self, client, table):
        self.client = client
        self.table = table
        self.operation = None
        self.values = None
        self.filters = []
        self.order_column = None
        self.descending = False
        self.max_rows = None
        self.head = False

    def insert(self, values):
        self.operation, self.values = "insert", values
        return self

    def update(self, values):
        self.operation, self.values = "update", values
        return self

    def delete(self):
        self.operation = "delete"
        return self

    def select(self, columns="*", count=None, head=False):
        self.operation = "select"
        self.head = head
        return self

    def order(self, column, desc=False):
        self.order_column, self.descending = column, desc
        return self

    def limit(self, count):
        self.max_rows = count
        return self

    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def neq(self, column, value):
        self.filters.append(lambda row: row.get(column) != value)
        return self

    def execute(self):
        if self.client.fail or self.operation in self.client.fail_operations:
            raise ConnectionError("connection refused")
        rows = self.client.tables.setdefault(self.table, [])

        if self.operation == "insert":
            row = dict(self.values, id=str(uuid.uuid4()), created_at=self.client.next_timestamp())
            rows.append(row)
            return FakeResponse([dict(row)])

        matched = [row for row in rows if all(check(row) for check in self.filters)]
        if self.operation == "update":
            for row in matched:
                row.update(self.values)
            return FakeResponse([dict(row) for row in matched])
        if self.operation == "delete":
            self.client.tables[self.table] = [row for row in rows if row not in matched]
            return FakeResponse([dict(row) for row in matched])

        if self.order_column:
            matched.sort(key=lambda row: row[self.order_column], reverse=self.descending)
        total = len(matched)
        if self.max_rows is not None:
            matched = matched[: self.max_rows]
        if self.head:
            return FakeResponse([], count=total)
        return FakeResponse([dict(row) for row in matched], count=total)


class FakeBucket:
    def __init__(self, storage, name):
        self.storage = storage
        self.name = name

    def upload(self, path, data, file_options=None):
        if self.storage.fail_upload:
            raise RuntimeError("Bucket not found")
        self.storage.objects[path] = data
        return {"Key": f"{self.name}/{path}"}

    def get_public_url(self, path):
        return f"https://example.supabase.co/storage/v1/object/public/{self.name}/{path}"

    def download(self, path):
        return self.storage.objects[path]

    def remove(self, paths):
        for path in paths:
            self.storage.objects.pop(path, None)
        return []


class FakeStorage:
    def __init__(self):
        self.objects = {}
        self.fail_upload = False

    def from_(self, bucket):
        return FakeBucket(self, bucket)


class FakeSupabase:
    """Just enough of supabase.Client for the history gateway."""

    def __init__(self):
        self.tables = {}
        self.storage = FakeStorage()
        self.fail = False
        self.fail_operations = set()
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def next_timestamp(self):
        self._clock += timedelta(seconds=1)
        return self._clock.isoformat()

    def table(self, name):
        return FakeQuery(self, name)


@pytest.fixture
def thinking_json():
    return json.dumps(make_thinking())


@pytest.fixture
def match_json():
    return json.dumps(make_match_response())


@pytest.fixture
def payload():
    text = b"Jane Doe\nBackend Engineer\nPython, Postgres, Kubernetes"
    return FilePayload(
        content=base64.b64encode(text).decode("ascii"),
        mime_type="text/plain",
        original_name="resume.txt",
    )


@pytest.fixture
def pdf_resume(tmp_path):
    """A 2MB PDF resume on disk."""
    path = tmp_path / "resume.pdf"
    body = b"%PDF-1.4\n" + b"0" * (2 * 1024 * 1024 - 9)
    path.write_bytes(body)
    return path


@pytest.fixture
def supabase_client():
    return FakeSupabase()
