from types import SimpleNamespace

import pytest


class FakeDocumentRef:
    def __init__(self, doc_id, data, events):
        self.id = doc_id
        self.path = f"transcriptionJobs/{doc_id}"
        self.data = data
        self.events = events
        self.options = []
        self.update_error = None
        self.fail_on_status = None

    def update(self, fields, option=None):
        if self.update_error is not None and fields.get("status") == self.fail_on_status:
            raise self.update_error
        self.events.append(("update", fields.get("status")))
        self.options.append(option)
        self.data.update(fields)


class FakeQuery:
    def __init__(self, db, docs, filters=(), limit=None):
        self._db = db
        self._docs = docs
        self._filters = list(filters)
        self._limit = limit

    def where(self, filter=None):
        return FakeQuery(self._db, self._docs, self._filters + [filter], self._limit)

    def limit(self, count):
        return FakeQuery(self._db, self._docs, self._filters, count)

    def get(self):
        if self._db.query_error is not None:
            raise self._db.query_error
        self._db.events.append(("query", None))
        matches = [
            SimpleNamespace(reference=ref, update_time="t0")
            for ref in self._docs
            if all(ref.data.get(f.field_path) == f.value for f in self._filters if f.op_string == "==")
        ]
        return matches[: self._limit] if self._limit is not None else matches


class FakeFirestore:
    def __init__(self, events):
        self.events = events
        self.docs = []
        self.query_error = None

    def add_job(self, doc_id, **data):
        ref = FakeDocumentRef(doc_id, data, self.events)
        self.docs.append(ref)
        return ref

    def collection(self, name):
        return FakeQuery(self, self.docs)

    def write_option(self, **kwargs):
        return kwargs


class FakeBlob:
    def __init__(self, name, bucket):
        self.name = name
        self.bucket = bucket
        self.uploaded_from = None
        self.content_type = None
        self.deleted = False
        self.download_error = None
        self.upload_error = None
        self.delete_error = None

    def download_to_filename(self, path):
        if self.download_error is not None:
            raise self.download_error
        self.bucket.events.append(("download", self.name))
        with open(path, "wb") as f:
            f.write(b"video-bytes")

    def upload_from_filename(self, path, content_type=None):
        if self.upload_error is not None:
            raise self.upload_error
        self.bucket.events.append(("upload", self.name))
        self.uploaded_from = path
        self.content_type = content_type

    def delete(self):
        if self.delete_error is not None:
            raise self.delete_error
        self.bucket.events.append(("delete", self.name))
        self.deleted = True


class FakeBucket:
    def __init__(self, name, events):
        self.name = name
        self.events = events
        self.blobs = {}

    def blob(self, name):
        return self.blobs.setdefault(name, FakeBlob(name, self))


class FakeStorageClient:
    def __init__(self, events):
        self.events = events
        self.buckets = {}

    def bucket(self, name):
        return self.buckets.setdefault(name, FakeBucket(name, self.events))


class FakeOperation:
    def __init__(self, response=None, error=None):
        self._response = response
        self._error = error
        self.timeout = "unset"

    def result(self, timeout=None):
        self.timeout = timeout
        if self._error is not None:
            raise self._error
        return self._response


class FakeSpeechClient:
    def __init__(self, events, operation):
        self.events = events
        self.operation = operation
        self.requests = []
        self.submit_error = None

    def long_running_recognize(self, config=None, audio=None):
        if self.submit_error is not None:
            raise self.submit_error
        self.events.append(("recognize", audio.uri))
        self.requests.append((config, audio))
        return self.operation


def duration(seconds=0, nanos=0):
    return SimpleNamespace(seconds=seconds, nanos=nanos)


def make_response(*segments):
    """Build a recogniser response; each segment is (transcript, [(word, start, end), ...])."""
    results = []
    for transcript, words in segments:
        word_infos = [
            SimpleNamespace(word=w, start_time=duration(*start), end_time=duration(*end)) for w, start, end in words
        ]
        results.append(SimpleNamespace(alternatives=[SimpleNamespace(transcript=transcript, words=word_infos)]))
    return SimpleNamespace(results=results)


@pytest.fixture
def events():
    return []


@pytest.fixture
def db(events):
    return FakeFirestore(events)


@pytest.fixture
def storage_client(events):
    return FakeStorageClient(events)
