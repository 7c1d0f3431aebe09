from statement_import.tabular import (
    decode_csv,
    decode_csv_with_delimiter,
    detect_delimiter,
    split_line,
)


def test_semicolons_outnumbering_commas_pick_semicolon():
    assert detect_delimiter("Datum;Omschrijving, kort;Bedrag") == ";"


def test_each_candidate_delimiter_is_detected():
    assert detect_delimiter("a,b,c") == ","
    assert detect_delimiter("a\tb\tc") == "\t"
    assert detect_delimiter("a|b|c") == "|"


def test_delimiter_ties_prefer_earlier_candidate_and_default_is_comma():
    assert detect_delimiter("a;b,c") == ";"
    assert detect_delimiter("single") == ","


def test_split_line_keeps_quoted_delimiters():
    assert split_line('2024-01-15,"Smith, John",10.00', ",") == ["2024-01-15", "Smith, John", "10.00"]


def test_split_line_escaped_quote_does_not_toggle():
    fields = split_line(r'a,"say \"hi, there",b', ",")
    assert len(fields) == 3
    assert fields[0] == "a"
    assert fields[2] == "b"


def test_decode_keys_rows_by_trimmed_headers():
    text = " Date , Description ,Amount\n2024-01-15, Grocery Store , 45.67 \n"
    assert decode_csv(text) == [
        {"Date": "2024-01-15", "Description": "Grocery Store", "Amount": "45.67"}
    ]


def test_decode_handles_crlf_and_blank_lines():
    text = "Date,Description,Amount\r\n\r\n2024-01-15,Coffee,3.50\r\n\n2024-01-16,Tea,2.00\r\n"
    rows = decode_csv(text)
    assert [r["Description"] for r in rows] == ["Coffee", "Tea"]
    assert rows[1]["Amount"] == "2.00"


def test_rows_with_wrong_field_count_are_dropped():
    text = "Date,Description,Amount\n2024-01-15,Coffee,3.50\n2024-01-16,Broken\n2024-01-17,A,B,C\n"
    rows = decode_csv(text)
    assert len(rows) == 1
    assert rows[0]["Description"] == "Coffee"


def test_fewer_than_two_lines_yields_no_rows():
    assert decode_csv("") == []
    assert decode_csv("Date,Description,Amount") == []
    assert decode_csv("\n\n  \n") == []


def test_semicolon_export_is_decoded_with_reported_delimiter():
    text = "Datum;Omschrijving;Bedrag\n15-01-2024;Albert Heijn, Utrecht;-12,50\n"
    rows, delimiter = decode_csv_with_delimiter(text)
    assert delimiter == ";"
    assert rows == [
        {"Datum": "15-01-2024", "Omschrijving": "Albert Heijn, Utrecht", "Bedrag": "-12,50"}
    ]
