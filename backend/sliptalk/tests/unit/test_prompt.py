from sliptalk.phrases.prompt import AVOID_LIST_SIZE, DIFFICULTIES, RecentPhraseTracker, build_prompt


class TestBuildPrompt:
    def test_describes_every_difficulty(self):
        prompt = build_prompt()
        for difficulty in DIFFICULTIES:
            assert f"{difficulty.level}. {difficulty.description} ({difficulty.word_count})" in prompt
            assert difficulty.examples[0] in prompt

    def test_lists_previous_phrases_to_avoid(self):
        prompt = build_prompt(["Quiet bees", "My llama has opinions"])
        assert "Quiet bees, My llama has opinions" in prompt

    def test_avoid_list_is_capped(self):
        previous = [f"phrase number {i}" for i in range(AVOID_LIST_SIZE + 5)]
        prompt = build_prompt(previous)

        assert f"phrase number {AVOID_LIST_SIZE - 1}" in prompt
        assert f"phrase number {AVOID_LIST_SIZE}" not in prompt

    def test_asks_for_json_array(self):
        assert '{"text": "phrase 1 here", "points": 1}' in build_prompt()


class TestRecentPhraseTracker:
    def test_records_in_order_without_duplicates(self):
        tracker = RecentPhraseTracker()
        tracker.record(["a", "b", "c"])
        tracker.record(["b", "d"])

        assert tracker.snapshot() == ["a", "b", "c", "d"]

    def test_resets_to_latest_batch_past_limit(self):
        tracker = RecentPhraseTracker(max_size=4)
        tracker.record(["a", "b", "c"])
        tracker.record(["d", "e", "f"])

        assert tracker.snapshot() == ["d", "e", "f"]
        assert len(tracker) == 3

    def test_exactly_at_limit_is_kept(self):
        tracker = RecentPhraseTracker(max_size=6)
        tracker.record(["a", "b", "c"])
        tracker.record(["d", "e", "f"])

        assert len(tracker) == 6
