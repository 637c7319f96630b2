from datetime import date, datetime

from app.utils.helpers import generate_access_code, generate_unique_access_code, truncate_text, validate_access_code
from app.utils.paths import create_recording_folder, create_recording_filename, create_recording_path

def test_recording_folder():
    folder = create_recording_folder(date(2024, 3, 7), "female", "Hindi", "AB12C")
    assert folder == "2024-03-07/female_Hindi_AB12C"

def test_recording_path():
    path = create_recording_path(datetime(2024, 12, 25, 18, 30), "male", "English", "ZZ999", 4)
    assert path == "2024-12-25/male_English_ZZ999/4.wav"

def test_recording_filename():
    assert create_recording_filename("male", "Tamil", "X1Y2Z", 0) == "male_Tamil_X1Y2Z_0.wav"

def test_missing_gender_and_separators():
    assert create_recording_filename(None, "Kannada/Tulu", "AAAAA", 2) == "unknown_Kannada-Tulu_AAAAA_2.wav"
    assert create_recording_folder(date(2024, 1, 1), "", "a\\b", "AAAAA") == "2024-01-01/unknown_a-b_AAAAA"

def test_access_code_format():
    for _ in range(50):
        code = generate_access_code()
        assert len(code) == 5
        assert validate_access_code(code)

def test_unique_access_code_skips_taken():
    calls = []

    def exists(code):
        calls.append(code)
        # 前两次都视为已占用
        return len(calls) <= 2

    code = generate_unique_access_code(exists)
    assert code == calls[-1]
    assert len(calls) == 3

def test_validate_access_code_rejects_bad_codes():
    assert not validate_access_code("abcde")
    assert not validate_access_code("ABCD")
    assert not validate_access_code(None)

def test_truncate_text():
    assert truncate_text("short", 50) == "short"
    assert truncate_text("x" * 60, 50) == "x" * 50 + "..."
