from jarvis_client.audio.segmenter import UtteranceSegmenter


def test_leading_silence_is_dropped() -> None:
    segmenter = UtteranceSegmenter(silence_frames=2)
    assert segmenter.push(b"\x00\x00", voiced=False) is False
    assert segmenter.started is False
    assert segmenter.take() == b""


def test_utterance_ends_after_trailing_silence() -> None:
    segmenter = UtteranceSegmenter(silence_frames=2)
    events = [
        segmenter.push(b"a", voiced=True),
        segmenter.push(b"-", voiced=False),
        segmenter.push(b"b", voiced=True),
        segmenter.push(b"-", voiced=False),
        segmenter.push(b"-", voiced=False),
    ]
    assert events == [False, False, False, False, True]
    assert segmenter.finished
    assert segmenter.push(b"c", voiced=True) is False
    assert segmenter.take() == b"a-b--"
    assert segmenter.finished is False


def test_take_returns_partial_utterance() -> None:
    segmenter = UtteranceSegmenter(silence_frames=5)
    segmenter.push(b"hel", voiced=True)
    segmenter.push(b"lo", voiced=True)
    assert segmenter.take() == b"hello"
    assert segmenter.take() == b""
