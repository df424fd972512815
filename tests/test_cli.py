"""
Tests for the command-line interface
"""

import json

from click.testing import CliRunner
from loguru import logger

from shipment_crosscheck import __version__
from shipment_crosscheck.cli import cli
from shipment_crosscheck.comparison.models import ConsistencyReport, RiskLevel

from conftest import BOE_PAYLOAD, HAWB_PAYLOAD, INVOICE_PAYLOAD

# Wide enough that rich does not wrap messages
ENV = {'COLUMNS': '200'}


def _write(tmp_path, name, data):
    path = tmp_path / name
    path.write_text(json.dumps(data), encoding='utf-8')
    return str(path)


class TestCLI:
    """Tests for the click commands."""

    def setup_method(self):
        self.runner = CliRunner()

    def teardown_method(self):
        # Sinks point at the runner's captured stderr, which is closed by now
        logger.remove()

    def _shipment_files(self, tmp_path):
        return [
            _write(tmp_path, 'invoice.json', INVOICE_PAYLOAD),
            _write(tmp_path, 'hawb.json', HAWB_PAYLOAD),
            _write(tmp_path, 'boe.json', BOE_PAYLOAD),
        ]

    def test_version(self):
        result = self.runner.invoke(cli, ['--version'])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_compare_json_report(self, tmp_path):
        output = tmp_path / 'report.json'
        result = self.runner.invoke(
            cli,
            ['compare', *self._shipment_files(tmp_path), '-f', 'json', '-o', str(output), '--no-timestamp'],
            env=ENV,
        )
        assert result.exit_code == 0, result.output
        assert 'Report written to' in result.output

        report = ConsistencyReport.from_dict(json.loads(output.read_text(encoding='utf-8')))
        assert report.summary.total_documents == 3
        assert report.summary.risk_level == RiskLevel.LOW
        assert report.metadata.timestamp is None

    def test_compare_text_to_stdout(self, tmp_path):
        result = self.runner.invoke(cli, ['compare', *self._shipment_files(tmp_path)], env=ENV)
        assert result.exit_code == 0, result.output
        assert 'SUMMARY' in result.output
        assert 'Risk level: LOW' in result.output

    def test_list_payload_in_one_file(self, tmp_path):
        path = _write(tmp_path, 'shipment.json', [INVOICE_PAYLOAD, HAWB_PAYLOAD])
        result = self.runner.invoke(cli, ['compare', path, '-f', 'html'], env=ENV)
        assert result.exit_code == 0, result.output
        assert '<!DOCTYPE html>' in result.output

    def test_compare_needs_two_documents(self, tmp_path):
        path = _write(tmp_path, 'invoice.json', INVOICE_PAYLOAD)
        result = self.runner.invoke(cli, ['compare', path], env=ENV)
        assert result.exit_code == 1
        assert 'Need at least two successfully extracted documents' in result.output

    def test_compare_bad_json(self, tmp_path):
        bad = tmp_path / 'bad.json'
        bad.write_text('{not json', encoding='utf-8')
        result = self.runner.invoke(cli, ['compare', str(bad), *self._shipment_files(tmp_path)], env=ENV)
        assert result.exit_code == 1
        assert 'is not valid JSON' in result.output

    def test_compare_bad_payload(self, tmp_path):
        path = _write(tmp_path, 'odd.json', {'documentName': 'odd.pdf', 'documentType': 'passport', 'fields': {}})
        result = self.runner.invoke(cli, ['compare', path, *self._shipment_files(tmp_path)], env=ENV)
        assert result.exit_code == 1
        assert 'Error' in result.output

    def test_compare_bad_config(self, tmp_path):
        config = tmp_path / 'crosscheck.yaml'
        config.write_text('similarity: 0.9\n', encoding='utf-8')
        result = self.runner.invoke(
            cli, ['compare', *self._shipment_files(tmp_path), '-c', str(config)], env=ENV,
        )
        assert result.exit_code == 1
        assert 'Unknown configuration keys: similarity' in result.output

    def test_validate(self, tmp_path):
        output = tmp_path / 'validation.json'
        result = self.runner.invoke(
            cli, ['validate', *self._shipment_files(tmp_path), '--json-output', str(output)], env=ENV,
        )
        assert result.exit_code == 0, result.output
        assert 'Document Quality' in result.output

        data = json.loads(output.read_text(encoding='utf-8'))
        assert [d['document_name'] for d in data['documents']] == ['invoice.pdf', 'hawb.pdf', 'boe.pdf']
        assert all(d['document_type_valid'] for d in data['documents'])
        assert data['shipment']['is_valid'] is True

    def test_validate_single_document(self, tmp_path):
        output = tmp_path / 'validation.json'
        path = _write(tmp_path, 'boe.json', BOE_PAYLOAD)
        result = self.runner.invoke(cli, ['validate', path, '--json-output', str(output)], env=ENV)
        assert result.exit_code == 0, result.output
        assert 'shipment' not in json.loads(output.read_text(encoding='utf-8'))

    def test_hsn_valid(self):
        result = self.runner.invoke(cli, ['hsn', '84713010'], env=ENV)
        assert result.exit_code == 0, result.output
        assert 'valid' in result.output
        assert 'Automatic data processing machines' in result.output

    def test_hsn_mapping(self):
        result = self.runner.invoke(cli, ['hsn', '84713010', '84713090'], env=ENV)
        assert result.exit_code == 0, result.output
        assert 'Mapping: consistent' in result.output

    def test_hsn_invalid(self):
        result = self.runner.invoke(cli, ['hsn', '8471'], env=ENV)
        assert result.exit_code == 1
        assert 'HSN code too short' in result.output

    def test_fields(self):
        result = self.runner.invoke(cli, ['fields'], env=ENV)
        assert result.exit_code == 0
        assert 'awb_number' in result.output
        assert 'gross_weight' in result.output
