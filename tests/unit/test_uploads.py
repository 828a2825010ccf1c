import asyncio

import pytest

from studybuddy_ai.errors import GenerationError, TotalBatchFailure, UploadValidationError
from studybuddy_ai.services.uploads import UploadMode, submit, validate_batch

MB = 1024 * 1024


def _messages(exc):
    return [e['message'] for e in exc.errors]


def test_rejects_eleven_files_without_calling_service(make_file, fake_generator):
    gen = fake_generator()
    files = [make_file(name=f'f{i}.txt', content=f'file{i}'.encode()) for i in range(11)]
    with pytest.raises(UploadValidationError) as exc:
        asyncio.run(submit(files, 5, UploadMode.BATCH, gen))
    assert 'You can select a maximum of 10 files.' in _messages(exc.value)
    assert gen.calls == []
    assert [n.title for n in exc.value.notifications] == ['Invalid Input']


def test_rejects_six_megabyte_file_without_calling_service(make_file, fake_generator):
    gen = fake_generator()
    files = [make_file(name='big.pdf', media_type='application/pdf', size=6 * MB)]
    with pytest.raises(UploadValidationError) as exc:
        asyncio.run(submit(files, 5, UploadMode.SINGLE, gen))
    assert 'Max file size is 5MB.' in _messages(exc.value)
    assert gen.calls == []


def test_reports_every_violation(make_file):
    files = [make_file(name='a.png', media_type='image/png', size=6 * MB)] * 11
    with pytest.raises(UploadValidationError) as exc:
        validate_batch(files, 11, UploadMode.BATCH)
    messages = _messages(exc.value)
    assert 'You can select a maximum of 10 files.' in messages
    assert 'Total size of all files cannot exceed 50MB.' in messages
    assert 'Max file size is 5MB.' in messages
    assert 'Unsupported file type. Please upload PDF, TXT, MD, or DOCX.' in messages
    assert 'One or more files have validation errors (size/type).' in messages
    assert 'Cannot generate more than 10 questions per file in batch mode.' in messages
    assert {'field': 'files.3', 'message': 'Max file size is 5MB.'} in exc.value.errors


def test_question_limits_per_profile(make_file):
    f = make_file()
    assert validate_batch([f], '20', UploadMode.SINGLE).questions_per_file == 20
    with pytest.raises(UploadValidationError):
        validate_batch([f], 21, UploadMode.SINGLE)
    assert validate_batch([f], 10, UploadMode.BATCH).questions_per_file == 10
    with pytest.raises(UploadValidationError):
        validate_batch([f], 11, UploadMode.BATCH)
    with pytest.raises(UploadValidationError) as exc:
        validate_batch([f], 0, UploadMode.BATCH)
    assert _messages(exc.value) == ['Must generate at least 1 question per file.']


@pytest.mark.parametrize('value', ['2.5', 'abc', '', None, True])
def test_question_count_must_be_whole_number(make_file, value):
    with pytest.raises(UploadValidationError) as exc:
        validate_batch([make_file()], value, UploadMode.SINGLE)
    assert exc.value.errors[0]['field'] == 'numberOfQuestions'


def test_single_mode_requires_exactly_one_file(make_file):
    with pytest.raises(UploadValidationError) as exc:
        validate_batch([make_file(), make_file()], 5, UploadMode.SINGLE)
    assert _messages(exc.value) == ['Please upload exactly one file.']


def test_batch_mode_requires_a_file():
    with pytest.raises(UploadValidationError) as exc:
        validate_batch([], 5, UploadMode.BATCH)
    assert _messages(exc.value) == ['Please select at least one file.']


def test_partial_failure_keeps_order_and_counts(make_file, fake_generator):
    gen = fake_generator({'two': GenerationError('model exploded')})
    files = [make_file(name=f'{n}.txt', content=n.encode()) for n in ('one', 'two', 'three')]

    outcome = asyncio.run(submit(files, 2, UploadMode.BATCH, gen))

    assert [c.question for c in outcome.cards] == ['one q1', 'one q2', 'three q1', 'three q2']
    assert outcome.successful_files == 2
    assert outcome.failed_files == 1
    assert outcome.status == 'ok'
    assert [k for k, _ in gen.calls] == ['one', 'two', 'three']
    titles = [n.title for n in outcome.notifications]
    assert titles == ['Processing Error (two.txt)', 'Processing Complete!']
    assert outcome.notifications[-1].description == 'Generated 4 cards from 2 file(s). 1 file(s) failed.'
    outcome.raise_for_status()


def test_empty_or_malformed_results_count_as_failures(make_file, fake_generator):
    gen = fake_generator({
        'empty': {'questionCards': []},
        'bad': {'cards': [{'front': 'x'}]},
    })
    files = [make_file(name=f'{n}.md', media_type='text/markdown', content=n.encode()) for n in ('empty', 'bad', 'good')]

    outcome = asyncio.run(submit(files, 1, UploadMode.BATCH, gen))

    assert outcome.failed_files == 2
    assert outcome.successful_files == 1
    assert [c.question for c in outcome.cards] == ['good q1']
    assert outcome.notifications[-1].description == 'Generated 1 cards from 1 file(s). 2 file(s) failed.'


def test_total_failure(make_file, fake_generator):
    gen = fake_generator({'a': RuntimeError('timeout'), 'b': GenerationError('nope')})
    files = [make_file(name='a.txt', content=b'a'), make_file(name='b.txt', content=b'b')]

    outcome = asyncio.run(submit(files, 3, UploadMode.BATCH, gen))

    assert outcome.status == 'failed'
    assert outcome.cards == []
    assert outcome.failed_files == 2
    assert outcome.notifications[-1].title == 'Processing Failed'
    assert outcome.notifications[-1].variant == 'destructive'
    with pytest.raises(TotalBatchFailure):
        outcome.raise_for_status()


def test_questions_per_file_is_forwarded(make_file, fake_generator):
    gen = fake_generator()
    asyncio.run(submit([make_file(content=b'doc')], '7', UploadMode.SINGLE, gen))
    assert gen.calls == [('doc', 7)]
