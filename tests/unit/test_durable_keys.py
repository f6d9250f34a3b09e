"""Job handle → numeric durable key mapping."""

from __future__ import annotations

from itinerary_jobs.persistence.keys import durable_key
from itinerary_jobs.services.job_service import describe_job_id, generate_job_id


def test_numeric_handle_is_used_as_is():
    assert durable_key("12345") == 12345


def test_prefixed_handle_uses_timestamp_segment():
    assert durable_key("job_1717236000000_k3j2h1g0f9e8d") == 1717236000000
    assert durable_key("debug_42_anything") == 42
    assert durable_key("test_7") == 7


def test_other_handles_use_stable_string_hash():
    assert durable_key("abc") == 96354
    assert durable_key("hello") == 99162322


def test_negative_hash_is_made_positive():
    # Hashes to the minimum signed 32-bit value.
    assert durable_key("polygenelubricants") == 2147483648


def test_mapping_is_stable():
    handle = "custom-handle-xyz"
    assert durable_key(handle) == durable_key(handle)
    assert durable_key(handle) >= 0


def test_generated_ids_map_to_their_timestamp():
    job_id = generate_job_id()
    prefix, timestamp, suffix = job_id.split("_")
    assert prefix == "job"
    assert len(suffix) == 13
    assert durable_key(job_id) == int(timestamp)


def test_describe_job_id():
    assert describe_job_id("job_99_x") == {"originalJobId": "job_99_x", "dbCompatibleId": 99}
