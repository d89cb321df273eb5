"""
Unit Tests for report assembly and HTML output
"""

import tempfile
import unittest
from pathlib import Path

from dateutil import tz

from case_fixtures import makeEvent, utc
from classification.classifier import Classifier
from reporting.aggregator import EventAggregator
from reporting.assembler import ReportAssembler, sortCards
from reporting.cards import CardRenderer
from reporting.document import ReportMetadata
from reporting.html_writer import HtmlReportWriter


def buildReport(events, retrievalPartial=False, failedFiles=None):
    classifier = Classifier()
    classifier.classifyAll(events)
    zone = tz.tzutc()

    summary = EventAggregator().summarize(events)
    cards = CardRenderer(zone).renderAll(events)
    metadata = ReportMetadata(
        caseId='IR-2024-017',
        targetUser='alice@contoso.com',
        startDate='2024-03-01',
        endDate='2024-03-02',
        generatedAt='2024-03-03 09:00:00 UTC+00:00',
        filterDescription='None'
    )
    assembler = ReportAssembler('Unified Audit Log Investigation', classifier.workloadLabels, zone)
    return assembler.assemble(summary, cards, metadata, retrievalPartial, failedFiles)


def sampleEvents():
    return [
        makeEvent('late', operation='FileDeleted', creationTime=utc(2024, 3, 2, 9), ingestionIndex=0,
                  sourceAddress='203.0.113.7'),
        makeEvent('undated', operation='FileAccessed', creationTime=None, ingestionIndex=1),
        makeEvent('early-b', recordType='AzureActiveDirectoryStsLogon', operation='UserLoggedIn',
                  creationTime=utc(2024, 3, 1, 8), ingestionIndex=3),
        makeEvent('early-a', operation='FileModified', creationTime=utc(2024, 3, 1, 8), ingestionIndex=2,
                  payload={'SourceFileName': '<script>alert("x")</script>.docx'}),
    ]


class TestReportAssembler(unittest.TestCase):

    def testSectionOrder(self):
        document = buildReport(sampleEvents())

        self.assertEqual([section.sectionId for section in document.sections], [
            'summary',
            'timeline',
            'workload-file-activity',
            'workload-identity-access',
            'workload-exchange',
            'workload-business-apps',
            'workload-collaboration',
            'workload-other',
        ])
        self.assertEqual(
            [link.target for link in document.navigation],
            ['case'] + [section.sectionId for section in document.sections]
        )

    def testTimelineOrdering(self):
        document = buildReport(sampleEvents())

        timeline = document.section('timeline')
        self.assertEqual(
            [card.eventId for card in timeline.cards],
            ['early-a', 'early-b', 'late', 'undated']
        )

    def testWorkloadSectionsAreSorted(self):
        document = buildReport(sampleEvents())

        files = document.section('workload-file-activity')
        self.assertEqual([card.eventId for card in files.cards], ['early-a', 'late', 'undated'])

    def testEmptyWorkloadHasPlaceholder(self):
        document = buildReport(sampleEvents())

        exchange = document.section('workload-exchange')
        self.assertEqual(exchange.cards, [])
        self.assertTrue(exchange.isEmpty)
        self.assertEqual(exchange.emptyMessage, 'No Exchange events in this dataset.')

    def testSummaryTables(self):
        document = buildReport(sampleEvents())

        tables = {table.title: table for table in document.section('summary').tables}
        self.assertEqual(tables['Overview'].rows[0], ['Total events', '4'])
        self.assertEqual(tables['Events by Workload'].rows[0], ['File Activity', '3', '75.0%'])
        self.assertEqual(tables['Top Source Addresses'].rows, [['203.0.113.7', '1', '25.0%']])
        self.assertNotIn('Load Issues', tables)

    def testCompleteRetrievalHasNoBanner(self):
        document = buildReport(sampleEvents())

        self.assertFalse(document.partial)
        self.assertEqual(document.partialReasons, [])

    def testPartialRetrievalSetsBanner(self):
        document = buildReport(sampleEvents(), retrievalPartial=True)

        self.assertTrue(document.partial)
        self.assertEqual(len(document.partialReasons), 1)

    def testFailedFilesSetBanner(self):
        failed = [{'file': 'audit_2024-03-02.json', 'reason': 'Expecting value: line 1 column 1 (char 0)'}]

        document = buildReport(sampleEvents(), failedFiles=failed)

        self.assertTrue(document.partial)
        tables = {table.title: table for table in document.section('summary').tables}
        self.assertEqual(tables['Load Issues'].rows[0][0], 'audit_2024-03-02.json')

    def testSortCardsIsStable(self):
        cards = CardRenderer(tz.tzutc()).renderAll([
            makeEvent('b', creationTime=utc(2024, 3, 1), ingestionIndex=5),
            makeEvent('a', creationTime=utc(2024, 3, 1), ingestionIndex=1),
        ])

        self.assertEqual([card.eventId for card in sortCards(cards)], ['a', 'b'])


class TestHtmlReportWriter(unittest.TestCase):

    def setUp(self):
        self.tempDir = tempfile.TemporaryDirectory()
        self.outputPath = Path(self.tempDir.name) / 'report.html'
        self.writer = HtmlReportWriter()

    def tearDown(self):
        self.tempDir.cleanup()

    def testRenderedDocument(self):
        html = self.writer.render(buildReport(sampleEvents()))

        self.assertTrue(html.startswith('<!doctype html>'))
        self.assertIn('alice@contoso.com', html)
        self.assertIn('IR-2024-017', html)
        self.assertIn('2024-03-01 to 2024-03-02', html)
        self.assertIn('id="workload-exchange"', html)
        self.assertIn('No Exchange events in this dataset.', html)
        self.assertIn('id="timeline-event-2"', html)
        self.assertNotIn('PARTIAL DATA', html)

    def testPartialBannerIsRendered(self):
        html = self.writer.render(buildReport(sampleEvents(), retrievalPartial=True))

        self.assertIn('PARTIAL DATA', html)

    def testPayloadValuesAreEscaped(self):
        html = self.writer.render(buildReport(sampleEvents()))

        self.assertNotIn('<script>alert', html)
        self.assertIn('&lt;script&gt;alert(&#34;x&#34;)&lt;/script&gt;.docx', html)

    def testNoExternalReferences(self):
        html = self.writer.render(buildReport(sampleEvents()))

        self.assertNotIn('<link', html)
        self.assertNotIn('src=', html)
        self.assertNotIn('@import', html)
        self.assertNotIn('http://', html)
        self.assertNotIn('https://', html)

    def testWriteReplacesExistingReport(self):
        self.outputPath.write_text('stale', encoding='utf-8')

        self.writer.write(buildReport(sampleEvents()), self.outputPath)

        content = self.outputPath.read_text(encoding='utf-8')
        self.assertNotEqual(content, 'stale')
        self.assertIn('Unified Audit Log Investigation', content)
        self.assertEqual(
            sorted(path.name for path in Path(self.tempDir.name).iterdir()),
            ['report.html']
        )

    def testRegenerationIsIdentical(self):
        first = self.writer.render(buildReport(sampleEvents()))
        second = self.writer.render(buildReport(sampleEvents()))

        self.assertEqual(first, second)

    def testLoneSurrogateIsEscaped(self):
        events = sampleEvents()
        events.append(makeEvent('cut', creationTime=utc(2024, 3, 2, 10), ingestionIndex=4,
                                payload={'Subject': 'truncated \ud83d'}))

        self.writer.write(buildReport(events), self.outputPath)

        content = self.outputPath.read_text(encoding='utf-8')
        self.assertIn('truncated \\ud83d', content)
        self.assertEqual(
            sorted(path.name for path in Path(self.tempDir.name).iterdir()),
            ['report.html']
        )

    def testFailedWriteLeavesNoTemporaryFile(self):
        self.outputPath.mkdir()

        with self.assertRaises(OSError):
            self.writer.write(buildReport(sampleEvents()), self.outputPath)

        self.assertEqual(
            sorted(path.name for path in Path(self.tempDir.name).iterdir()),
            ['report.html']
        )


if __name__ == '__main__':
    unittest.main()
