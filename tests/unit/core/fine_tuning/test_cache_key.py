# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the terms described in the LICENSE file in
# the root directory of this source tree.

import json

from finetune_stack.core.fine_tuning.cache_key import (
    CacheKeyBuilder,
    fingerprint_training_data,
    rolling_hash,
    sample_records,
)
from finetune_stack_api import LearnerProfile


class TestRollingHash:
    def test_small_strings(self):
        assert rolling_hash("") == 0
        assert rolling_hash("a") == 97
        assert rolling_hash("ab") == 97 * 31 + 98

    def test_matches_32_bit_string_hash(self):
        assert rolling_hash("hello") == 99162322

    def test_wraps_to_32_bits_and_takes_absolute_value(self):
        # hashes to the minimum signed 32-bit value
        assert rolling_hash("polygenelubricants") == 2**31
        assert 0 <= rolling_hash("x" * 500) <= 2**31

    def test_hashes_utf16_code_units(self):
        # U+1F600 is the surrogate pair D83D DE00
        assert rolling_hash("\U0001F600") == 0xD83D * 31 + 0xDE00
        assert rolling_hash("\U0001F600") == rolling_hash([0xD83D, 0xDE00])


class TestSampling:
    def test_all_records_when_fewer_than_five(self):
        data = [{"i": i} for i in range(3)]
        assert sample_records(data) == data

    def test_evenly_spaced_samples(self):
        data = [{"i": i} for i in range(10)]
        assert [r["i"] for r in sample_records(data)] == [0, 2, 4, 6, 8]

    def test_uneven_spacing_floors_indices(self):
        data = [{"i": i} for i in range(7)]
        assert [r["i"] for r in sample_records(data)] == [0, 1, 2, 4, 5]


class TestFingerprint:
    def test_empty_data(self):
        assert fingerprint_training_data([]) == "empty"

    def test_format(self):
        sample_string = '[{"a":1}]'
        assert fingerprint_training_data([{"a": 1}]) == f"1_{len(sample_string)}_{rolling_hash(sample_string)}"

    def test_whitespace_is_stripped(self):
        assert fingerprint_training_data([{"text": "a b"}]) == fingerprint_training_data([{"text": "ab"}])

    def test_sample_string_truncated_to_100_characters(self):
        data = [{"text": "x" * 300}]
        count, length, _ = fingerprint_training_data(data).split("_")
        assert count == "1"
        assert length == "100"

    def test_prefix_length_counts_utf16_code_units(self):
        data = [{"text": "\U0001F600" * 60}]
        count, length, _ = fingerprint_training_data(data).split("_")
        assert count == "1"
        assert length == "100"

    def test_independent_of_key_order(self):
        first = [{"text": "hello", "label": "greeting"}]
        second = [{"label": "greeting", "text": "hello"}]
        assert fingerprint_training_data(first) == fingerprint_training_data(second)

    def test_unsampled_records_do_not_change_fingerprint(self):
        data = [{"i": i} for i in range(10)]
        changed = list(data)
        changed[1] = {"i": "something else"}
        assert fingerprint_training_data(data) == fingerprint_training_data(changed)

    def test_count_changes_fingerprint(self):
        data = [{"i": i} for i in range(5)]
        assert fingerprint_training_data(data) != fingerprint_training_data(data + [{"i": 5}])


class TestCacheKeyBuilder:
    def test_deterministic_for_identical_requests(self, make_request):
        builder = CacheKeyBuilder()
        assert builder.build(make_request()) == builder.build(make_request())

    def test_structure_and_field_order(self, make_request):
        key = CacheKeyBuilder().build(make_request())
        assert key.startswith("finetuning_")
        body = json.loads(key[len("finetuning_") :])
        assert list(body) == ["modelType", "purpose", "targetDomain", "learnerLevel", "dataHash"]
        assert body["modelType"] == "text-classification"
        assert body["purpose"] == "question-routing"
        assert body["targetDomain"] == "mathematics"

    def test_learner_level_defaults_to_any(self, make_request):
        key = CacheKeyBuilder().build(make_request())
        assert json.loads(key[len("finetuning_") :])["learnerLevel"] == "any"

    def test_learner_skill_level_is_part_of_key(self, make_request):
        builder = CacheKeyBuilder()
        beginner = builder.build(make_request(learner_profile=LearnerProfile(skill_level="beginner")))
        advanced = builder.build(make_request(learner_profile=LearnerProfile(skill_level="advanced")))
        assert beginner != advanced
        assert '"learnerLevel":"beginner"' in beginner

    def test_other_profile_fields_do_not_affect_key(self, make_request):
        builder = CacheKeyBuilder()
        visual = builder.build(
            make_request(learner_profile=LearnerProfile(skill_level="beginner", learning_style="visual"))
        )
        auditory = builder.build(
            make_request(learner_profile=LearnerProfile(skill_level="beginner", learning_style="auditory"))
        )
        assert visual == auditory

    def test_settings_outside_the_fingerprint_do_not_affect_key(self, make_request):
        builder = CacheKeyBuilder()
        assert builder.build(make_request()) == builder.build(make_request(force_retrain=True, tags=["x"]))

    def test_purpose_changes_key(self, make_request):
        builder = CacheKeyBuilder()
        assert builder.build(make_request()) != builder.build(make_request(purpose="grading"))
