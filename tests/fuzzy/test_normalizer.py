import unicodedata

from fuzzy_search.fuzzy.normalizer import TextNormalizer, normalize


def test_normalize_folds_vietnamese_name():
    assert normalize("Nguyễn Văn A") == "nguyen van a"
    assert normalize("Đặng Thị Hồng Nhung") == "dang thi hong nhung"
    assert normalize("Trường Đại Học Bách Khoa") == "truong dai hoc bach khoa"


def test_normalize_covers_every_vowel_family():
    assert normalize("ÀÁẠẢÃÂẦẤẬẨẪĂẰẮẶẲẴ") == "a" * 17
    assert normalize("èéẹẻẽêềếệểễ") == "e" * 11
    assert normalize("ìíịỉĩ") == "iiiii"
    assert normalize("òóọỏõôồốộổỗơờớợởỡ") == "o" * 17
    assert normalize("ùúụủũưừứựửữ") == "u" * 11
    assert normalize("ỳýỵỷỹ") == "yyyyy"
    assert normalize("đĐ") == "dd"


def test_normalize_is_idempotent():
    samples = ["Nguyễn Văn A", "Hà Nội", "café", "MiXeD  Case", "", "日本語", "İstanbul"]
    for text in samples:
        once = normalize(text)
        assert normalize(once) == once


def test_normalize_without_folding_only_lowercases():
    assert TextNormalizer.normalize("Nguyễn Văn A", fold_accents=False) == "nguyễn văn a"


def test_normalize_handles_missing_input():
    assert normalize(None) == ""
    assert normalize("") == ""


def test_normalize_passes_other_characters_through():
    # Non-Vietnamese letters and symbols are left alone
    assert normalize("Straße ñ ç #42") == "straße ñ ç #42"


def test_normalize_composes_decomposed_input():
    decomposed = unicodedata.normalize("NFD", "Nguyễn")
    assert decomposed != "Nguyễn"
    assert normalize(decomposed) == "nguyen"


def test_variants_of():
    assert TextNormalizer.variants_of("d") == "dđ"
    assert TextNormalizer.variants_of("a").startswith("aà")
    assert TextNormalizer.variants_of("x") == ""
