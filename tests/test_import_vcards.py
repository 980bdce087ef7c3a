import json
import logging
from types import SimpleNamespace

import pandas as pd
import pytest

from vcard_contacts import common
from vcard_contacts import import_vcards as iv
from vcard_contacts.config_loader import load_pipeline_config
from vcard_contacts.dispatcher import build_record
from vcard_contacts.logging_utils import configure_logging
from vcard_contacts.models import CardVersion, ContactRecord, RecordStateError, Variant
from vcard_contacts.reader import iter_vcard_properties, parse_property_line, unfold_lines
from vcard_contacts.sink import CsvRecordSink

SAMPLE_VCF = "\n".join(
    [
        "BEGIN:VCARD",
        "VERSION:2.1",
        "N:Doe;John;;;",
        "TEL;CELL;PREF:+1 (555) 123-4567",
        "item1.EMAIL;type=INTERNET;type=WORK:john@example.com",
        "ADR;HOME:;;1 Main St;Springfield;;12345;USA",
        "TITLE:Engineer",
        "ORG:Acme;R&D",
        "NOTE:likes long",
        " walks",
        "END:VCARD",
        "BEGIN:VCARD",
        "VERSION:3.0",
        "SOUND;TYPE=X-IRMC-N:ヤマダ;タロウ",
        "PHOTO;ENCODING=b;TYPE=JPEG:aGVsbG8=",
        "END:VCARD",
        "BEGIN:VCARD",
        "VERSION:3.0",
        "REV:2020-01-01T00:00:00Z",
        "END:VCARD",
        "",
    ]
)


def test_unfold_lines_joins_continuations():
    assert unfold_lines("NOTE:a\n b\n\tc\nFN:x") == ["NOTE:abc", "FN:x"]


def test_parse_property_line_parameters():
    prop = parse_property_line("item2.TEL;TYPE=work,voice;type=WORK;PREF:+1 555")
    assert prop is not None
    assert prop.name == "TEL"
    assert prop.get_parameters("TYPE") == ["work", "voice", "WORK", "PREF"]
    assert prop.values == ["+1 555"]


def test_parse_property_line_structured_and_escaped():
    adr = parse_property_line("ADR:;;12\\, High St;Town", CardVersion.V30)
    assert adr.values == ["", "", "12, High St", "Town"]

    note = parse_property_line("NOTE:one\\ntwo\\; three", CardVersion.V30)
    assert note.values == ["one\ntwo; three"]

    assert parse_property_line("no colon here") is None


def test_parse_property_line_v21_keeps_unknown_escapes():
    note = parse_property_line("NOTE:C:\\new\\folder\\, ok", CardVersion.V21)
    assert note.values == ["C:\\new\\folder, ok"]


def test_sound_escapes_survive_until_dispatch():
    text = "BEGIN:VCARD\nVERSION:3.0\nSOUND;TYPE=X-IRMC-N:a\\;b;c\nEND:VCARD\n"
    (card,) = iter_vcard_properties(text)
    assert card.properties[-1].values == ["a\\;b;c"]

    record = build_record(card.properties, version=card.version)
    assert (record.phonetic_family_name, record.phonetic_given_name) == ("a;b", "c")


def test_iter_vcard_properties_reads_cards():
    cards = list(iter_vcard_properties(SAMPLE_VCF))
    assert len(cards) == 3
    assert cards[0].version is CardVersion.V21
    assert cards[1].version is CardVersion.V30
    photo = [prop for prop in cards[1].properties if prop.name == "PHOTO"][0]
    assert photo.payload == b"hello"


def test_end_to_end_record_from_vcf():
    first, second, third = list(iter_vcard_properties(SAMPLE_VCF))

    record = build_record(first.properties, version=first.version)
    assert record.display_name == "John Doe"
    assert record.phones[0].value == "+15551234567"
    assert record.phones[0].category == "mobile"
    assert record.phones[0].is_primary is True
    assert record.emails[0].category == "work"
    assert record.postal_addresses[0].category == "home"
    assert record.organizations[0].company == "Acme"
    assert record.organizations[0].department == "R&D"
    assert record.organizations[0].title == "Engineer"
    assert record.notes == ["likes longwalks"]

    phonetic = build_record(second.properties, variant=Variant.JAPAN, version=second.version)
    assert phonetic.display_name == "ヤマダ タロウ"
    assert phonetic.photos[0].format_name == "JPEG"

    assert build_record(third.properties).is_ignorable()


def test_csv_sink_rejects_unconsolidated_record():
    sink = CsvRecordSink()
    with pytest.raises(RecordStateError):
        sink.accept(ContactRecord())


def test_csv_sink_skips_ignorable_and_writes(tmp_path):
    sink = CsvRecordSink()
    assert sink.accept(build_record([])) is False
    named = build_record(list(iter_vcard_properties(SAMPLE_VCF))[0].properties)
    assert sink.accept(named, account="owner") is True
    assert sink.summary() == {"written": 1, "skipped": 1}

    out = tmp_path / "nested" / "out.csv"
    assert sink.write(out) is True
    df = pd.read_csv(out, dtype=str, keep_default_na=False)
    assert df.iloc[0]["display_name"] == "John Doe"
    assert df.iloc[0]["account"] == "owner"
    assert df.iloc[0]["phones"] == "+15551234567::*mobile"
    addresses = json.loads(df.iloc[0]["addresses_json"])
    assert addresses[0]["formatted"] == "1 Main St Springfield 12345 USA"


def test_load_pipeline_config_from_yaml(tmp_path):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        "card:\n  variant: japan\n  version: '3.0'\nlogging:\n  level: debug\n",
        encoding="utf-8",
    )
    config = load_pipeline_config(SimpleNamespace(config=str(config_path), out_dir=str(tmp_path)))
    assert config.card.variant is Variant.JAPAN
    assert config.card.version is CardVersion.V30
    assert config.logging.level == "DEBUG"
    assert config.outputs.dir == tmp_path

    override = load_pipeline_config(
        SimpleNamespace(config=str(config_path), variant="europe", card_version=None)
    )
    assert override.card.variant is Variant.EUROPE


def test_load_pipeline_config_rejects_unknown_variant():
    with pytest.raises(ValueError):
        load_pipeline_config(SimpleNamespace(variant="klingon"))


def test_main_writes_csv(tmp_path):
    vcf_path = tmp_path / "cards.vcf"
    vcf_path.write_text(SAMPLE_VCF, encoding="utf-8")
    out_dir = tmp_path / "out"

    assert iv.main(["--vcf", str(vcf_path), "--out-dir", str(out_dir), "--variant", "japan"]) == 0

    df = pd.read_csv(out_dir / iv.OUTPUT_FILENAME, dtype=str, keep_default_na=False)
    assert list(df["display_name"]) == ["John Doe", "ヤマダ タロウ"]


def test_build_with_missing_input_returns_empty(tmp_path):
    args = SimpleNamespace(vcf=str(tmp_path / "missing.vcf"), out_dir=str(tmp_path))
    df, sink = iv.build(args)
    assert df.empty
    assert sink.summary() == {"written": 0, "skipped": 0}


def test_configure_logging_precedence(monkeypatch):
    config = load_pipeline_config(SimpleNamespace())
    monkeypatch.delenv("VCARD_CONTACTS_LOG_LEVEL", raising=False)
    assert configure_logging(config) == logging.WARNING
    assert configure_logging(config, level_override="info") == logging.INFO
    monkeypatch.setenv("VCARD_CONTACTS_LOG_LEVEL", "error")
    assert configure_logging(config, level_override="info") == logging.ERROR


def test_common_facade_helpers(tmp_path):
    assert {"load_config", "make_property", "warn_missing"} <= set(common.__all__)
    assert common.warn_missing(str(tmp_path / "absent.vcf"), "vCard") is True
    assert common.warn_missing(str(tmp_path), "vCard") is False
    assert common.load_config(SimpleNamespace()).card.variant is Variant.DEFAULT
