"""
Unit Tests for the Unified Audit Log Investigation Pipeline
"""

import tempfile
import unittest
from pathlib import Path

from click.testing import CliRunner

from case_fixtures import makeRecord, writeJson, writeText, errorLines, utc
from main import InvestigationPipeline, RunStatus, cli
from utils.config_loader import ConfigLoader, buildCaseConfig


def writeCase(caseDir: Path) -> None:
    writeJson(caseDir, 'audit_2024-03-01.json', [
        makeRecord('UserLoggedIn', 'AzureActiveDirectoryStsLogon', '2024-03-01T08:00:00Z'),
        makeRecord('FileDeleted', 'SharePointFileOperation', '2024-03-01T10:15:00Z'),
    ])
    writeJson(caseDir, 'audit_2024-03-02.json', [
        makeRecord('MailItemsAccessed', 'ExchangeItem', '2024-03-02T11:00:00Z'),
    ])


class PipelineTestCase(unittest.TestCase):

    def setUp(self):
        self.tempDir = tempfile.TemporaryDirectory()
        self.caseDir = Path(self.tempDir.name) / 'case'
        self.caseDir.mkdir()
        self.reportPath = self.caseDir / 'report.html'
        self.logPath = self.caseDir / 'case.log'

    def tearDown(self):
        self.tempDir.cleanup()

    def runPipeline(self, **overrides) -> RunStatus:
        overrides.setdefault('caseDirectory', str(self.caseDir))
        overrides.setdefault('targetUser', 'alice@contoso.com')
        caseConfig = buildCaseConfig({}, overrides)
        return InvestigationPipeline(caseConfig).run(generatedAt=utc(2024, 3, 3, 9))


class TestInvestigationPipeline(PipelineTestCase):

    def testSuccessfulRun(self):
        writeCase(self.caseDir)

        status = self.runPipeline(timezone='UTC')

        self.assertEqual(status, RunStatus.SUCCESS)
        html = self.reportPath.read_text(encoding='utf-8')
        self.assertIn('UserLoggedIn', html)
        self.assertIn('MailItemsAccessed', html)
        self.assertIn('2024-03-03 09:00:00 UTC+00:00', html)
        self.assertNotIn('PARTIAL DATA', html)

        log = self.logPath.read_text(encoding='utf-8')
        self.assertIn('[INFO]', log)
        self.assertEqual(errorLines(self.logPath), [])

    def testMalformedFileProducesPartialReport(self):
        writeCase(self.caseDir)
        writeText(self.caseDir, 'audit_2024-03-03.json', '[{"Operations": ')

        status = self.runPipeline()

        self.assertEqual(status, RunStatus.SUCCESS)
        html = self.reportPath.read_text(encoding='utf-8')
        self.assertIn('PARTIAL DATA', html)
        self.assertIn('audit_2024-03-03.json', html)
        self.assertEqual(len(errorLines(self.logPath)), 1)

    def testInterruptedRetrievalProducesPartialReport(self):
        writeCase(self.caseDir)
        writeJson(self.caseDir, 'retrieval_status.json', {'status': 'interrupted'})

        self.assertEqual(self.runPipeline(), RunStatus.SUCCESS)
        self.assertIn('PARTIAL DATA', self.reportPath.read_text(encoding='utf-8'))

    def testEmptyFilterResultWritesNoReport(self):
        writeCase(self.caseDir)

        status = self.runPipeline(operationFilter='NoSuchOperation')

        self.assertEqual(status, RunStatus.WARNING)
        self.assertFalse(self.reportPath.exists())
        log = self.logPath.read_text(encoding='utf-8')
        self.assertIn('[WARN] No events after filtering', log)
        self.assertEqual(errorLines(self.logPath), [])

    def testFilteredRun(self):
        writeCase(self.caseDir)

        status = self.runPipeline(recordTypeFilter='ExchangeItem')

        self.assertEqual(status, RunStatus.SUCCESS)
        html = self.reportPath.read_text(encoding='utf-8')
        self.assertIn('MailItemsAccessed', html)
        self.assertNotIn('FileDeleted', html)
        self.assertIn('RecordType = ExchangeItem', html)

    def testEmptyDirectoryIsWarning(self):
        status = self.runPipeline()

        self.assertEqual(status, RunStatus.WARNING)
        self.assertFalse(self.reportPath.exists())

    def testMissingDirectoryIsFatal(self):
        missing = Path(self.tempDir.name) / 'missing'

        status = self.runPipeline(caseDirectory=str(missing))

        self.assertEqual(status, RunStatus.ERROR)
        self.assertFalse(missing.exists())

    def testAllFilesFailedIsFatal(self):
        writeText(self.caseDir, 'audit_2024-03-01.json', 'not json')

        status = self.runPipeline()

        self.assertEqual(status, RunStatus.ERROR)
        self.assertFalse(self.reportPath.exists())
        self.assertEqual(len(errorLines(self.logPath)), 2)

    def testCaseLogIsAppended(self):
        writeCase(self.caseDir)

        self.runPipeline()
        firstSize = self.logPath.stat().st_size
        self.runPipeline()

        self.assertGreater(self.logPath.stat().st_size, firstSize)

    def testTruncatedTextInPayload(self):
        writeJson(self.caseDir, 'audit_2024-03-01.json', [
            makeRecord('FileDeleted', 'SharePointFileOperation', '2024-03-01T10:15:00Z', auditData={
                'Operation': 'FileDeleted',
                'UserId': 'alice@contoso.com',
                'SourceFileName': 'truncated \ud83d'
            }),
        ])

        status = self.runPipeline(timezone='UTC')

        self.assertEqual(status, RunStatus.SUCCESS)
        self.assertIn('truncated \\ud83d', self.reportPath.read_text(encoding='utf-8'))
        self.assertEqual([path.name for path in self.caseDir.glob('*.tmp')], [])

    def testTimestampsAtRangeEdges(self):
        writeJson(self.caseDir, 'audit_2024-03-01.json', [
            makeRecord('FileAccessed', 'OneDrive', '/Date(999999999999999999)/'),
            makeRecord('FileModified', 'OneDrive', '9999-12-31T23:59:59Z'),
            makeRecord('FileDeleted', 'OneDrive', '2024-03-01T10:15:00Z'),
        ])

        status = self.runPipeline(timezone='Asia/Tokyo')

        self.assertEqual(status, RunStatus.SUCCESS)
        html = self.reportPath.read_text(encoding='utf-8')
        self.assertIn('/Date(999999999999999999)/', html)
        self.assertIn('9999-12-31 23:59:59 UTC+00:00', html)
        self.assertIn('2024-03-01 19:15:00 UTC+09:00', html)
        self.assertEqual(errorLines(self.logPath), [])

    def testSearchDoesNotMatchFileNames(self):
        records = [
            makeRecord('FileAccessed', 'OneDrive', '2024-03-01T09:00:00Z'),
            makeRecord('FileModified', 'OneDrive', '2024-03-01T09:01:00Z'),
        ]
        for record in records:
            del record['Identity']
        writeJson(self.caseDir, 'audit_2024-03-01.json', records)

        status = self.runPipeline(searchFilter='audit_2024')

        self.assertEqual(status, RunStatus.WARNING)
        self.assertFalse(self.reportPath.exists())

    def testStatus(self):
        caseConfig = buildCaseConfig({}, {'caseDirectory': str(self.caseDir), 'searchFilter': 'payroll'})
        pipeline = InvestigationPipeline(caseConfig)

        status = pipeline.get_status()

        self.assertEqual(status['filters'], 'Text contains "payroll"')
        self.assertEqual(status['reportPath'], str(self.caseDir / 'report.html'))


class TestConfiguration(PipelineTestCase):

    def testConfigFileAndOverrides(self):
        configPath = Path(self.tempDir.name) / 'config.yaml'
        configPath.write_text(
            "case:\n"
            "  id: 2024-017\n"
            f"  directory: {self.caseDir}\n"
            "filters:\n"
            "  operation: FileDeleted\n"
            "report:\n"
            "  top_n: 5\n"
            "logging:\n"
            "  case_log: investigation.log\n",
            encoding='utf-8'
        )

        config = ConfigLoader(str(configPath)).load()
        caseConfig = buildCaseConfig(config, {'operationFilter': 'UserLoggedIn', 'topN': None})

        self.assertEqual(caseConfig.caseId, '2024-017')
        self.assertEqual(caseConfig.operationFilter, 'UserLoggedIn')
        self.assertEqual(caseConfig.topN, 5)
        self.assertEqual(caseConfig.logPath, self.caseDir / 'investigation.log')
        self.assertEqual(caseConfig.reportPath, self.caseDir / 'report.html')

    def testMissingDirectoryIsRejected(self):
        with self.assertRaises(ValueError):
            buildCaseConfig({}, {})

    def testInvalidTopNIsRejected(self):
        with self.assertRaises(ValueError):
            buildCaseConfig({}, {'caseDirectory': str(self.caseDir), 'topN': 0})

    def testUnknownTimezoneIsRejected(self):
        caseConfig = buildCaseConfig({}, {'caseDirectory': str(self.caseDir), 'timezone': 'Not/AZone'})

        with self.assertRaises(ValueError):
            InvestigationPipeline(caseConfig)


class TestCli(PipelineTestCase):

    def testExitCodes(self):
        writeCase(self.caseDir)
        runner = CliRunner()

        result = runner.invoke(cli, ['--case-dir', str(self.caseDir), '--timezone', 'UTC'])
        self.assertEqual(result.exit_code, RunStatus.SUCCESS.value)
        self.assertTrue(self.reportPath.exists())

        result = runner.invoke(cli, ['--case-dir', str(self.caseDir), '--operation', 'NoSuchOperation'])
        self.assertEqual(result.exit_code, RunStatus.WARNING.value)

        result = runner.invoke(cli, ['--case-dir', str(Path(self.tempDir.name) / 'missing')])
        self.assertEqual(result.exit_code, RunStatus.ERROR.value)

    def testPartialFlagAndOutput(self):
        writeCase(self.caseDir)
        outputPath = Path(self.tempDir.name) / 'out' / 'alice.html'

        result = CliRunner().invoke(cli, [
            '--case-dir', str(self.caseDir),
            '--partial',
            '--output', str(outputPath),
            '--target-user', 'alice@contoso.com',
        ])

        self.assertEqual(result.exit_code, RunStatus.SUCCESS.value)
        self.assertIn('PARTIAL DATA', outputPath.read_text(encoding='utf-8'))

    def testMissingConfigFileIsFatal(self):
        result = CliRunner().invoke(cli, ['--config', str(Path(self.tempDir.name) / 'absent.yaml')])

        self.assertEqual(result.exit_code, RunStatus.ERROR.value)


if __name__ == '__main__':
    unittest.main()
