# Copyright 2025 Hathor Labs
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#    http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

from confidential_ct.crypto.group import G
from confidential_ct.crypto.transcript import Transcript


class TestTranscript:
    def test_same_messages_same_challenge(self) -> None:
        first = Transcript(b'test')
        second = Transcript(b'test')
        for transcript in (first, second):
            transcript.append_point(b'P', G)
            transcript.append_u64(b'n', 64)
        assert first.challenge_scalar(b'c') == second.challenge_scalar(b'c')

    def test_domain_separation(self) -> None:
        assert Transcript(b'a').challenge_scalar(b'c') != Transcript(b'b').challenge_scalar(b'c')
        assert Transcript(b'a').challenge_scalar(b'c') != Transcript(b'a').challenge_scalar(b'd')

    def test_framing(self) -> None:
        first = Transcript(b'test')
        first.append_message(b'ab', b'c')
        second = Transcript(b'test')
        second.append_message(b'a', b'bc')
        assert first.challenge_scalar(b'c') != second.challenge_scalar(b'c')

    def test_challenges_are_chained(self) -> None:
        transcript = Transcript(b'test')
        first = transcript.challenge_scalar(b'c')
        second = transcript.challenge_scalar(b'c')
        assert first != second
