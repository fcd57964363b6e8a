import unittest

from fakes import FakeToolkit, make_wav

from scene_analysis.services.audio_extractor import AudioExtractor, inspect_wav, is_wav_payload
from scene_analysis.services.errors import AudioExtractionError


class TestInspectWav(unittest.TestCase):
    def test_reads_fmt_chunk(self) -> None:
        fmt = inspect_wav(make_wav(channels=1, sample_rate=16000, sample_width=2))
        self.assertEqual((fmt.channels, fmt.sample_rate, fmt.bits_per_sample, fmt.audio_format), (1, 16000, 16, 1))

    def test_skips_leading_chunks(self) -> None:
        wav = make_wav(channels=2, sample_rate=44100)
        junk = b"LIST" + (6).to_bytes(4, "little") + b"abcdef"
        patched = wav[:12] + junk + wav[12:]
        fmt = inspect_wav(patched)
        self.assertEqual((fmt.channels, fmt.sample_rate), (2, 44100))

    def test_rejects_non_wav(self) -> None:
        self.assertFalse(is_wav_payload(b"\x00\x00\x00\x18ftypmp42"))
        with self.assertRaises(ValueError):
            inspect_wav(b"ID3\x03\x00\x00\x00")

    def test_rejects_missing_fmt(self) -> None:
        with self.assertRaises(ValueError):
            inspect_wav(b"RIFF\x04\x00\x00\x00WAVE")


class TestAudioExtractor(unittest.TestCase):
    def test_returns_transcription_ready_wav(self) -> None:
        data = AudioExtractor(FakeToolkit()).extract("video.mp4")
        self.assertTrue(is_wav_payload(data))
        fmt = inspect_wav(data)
        self.assertEqual(fmt.channels, 1)
        self.assertEqual(fmt.sample_rate, 16000)
        self.assertEqual(fmt.bits_per_sample, 16)

    def test_process_failure_raises(self) -> None:
        with self.assertRaises(AudioExtractionError):
            AudioExtractor(FakeToolkit(audio_error=True)).extract("video.mp4")

    def test_wrong_format_raises(self) -> None:
        extractor = AudioExtractor(FakeToolkit(audio=make_wav(channels=2, sample_rate=44100)))
        with self.assertRaises(AudioExtractionError):
            extractor.extract("video.mp4")

    def test_empty_output_raises(self) -> None:
        with self.assertRaises(AudioExtractionError):
            AudioExtractor(FakeToolkit(audio=b"")).extract("video.mp4")


if __name__ == "__main__":
    unittest.main()
